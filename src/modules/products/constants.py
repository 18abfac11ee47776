from django.db import models


class ProductCategory(models.TextChoices):
    SHIRT = "Shirt", "Shirt"
    PANT = "Pant", "Pant"
    JACKET = "Jacket", "Jacket"
    SUITS = "Suits", "Suits"
    ACCESSORIES = "Accessories", "Accessories"
    DRESS = "Dress", "Dress"
    SKIRT = "Skirt", "Skirt"
    T_SHIRT = "T-Shirt", "T-Shirt"
    OTHER = "Other", "Other"
