"""Tracking checkpoint vocabulary, in production order."""

from django.db import models


class TrackingStatus(models.TextChoices):
    ORDER_PLACED = "Order Placed", "Order Placed"
    CUTTING_STARTED = "Cutting Started", "Cutting Started"
    CUTTING_COMPLETED = "Cutting Completed", "Cutting Completed"
    SEWING_STARTED = "Sewing Started", "Sewing Started"
    SEWING_COMPLETED = "Sewing Completed", "Sewing Completed"
    FINISHING_STARTED = "Finishing Started", "Finishing Started"
    FINISHING_COMPLETED = "Finishing Completed", "Finishing Completed"
    QC_CHECKED = "QC Checked", "QC Checked"
    PACKED = "Packed", "Packed"
    SHIPPED = "Shipped", "Shipped"
    OUT_FOR_DELIVERY = "Out for Delivery", "Out for Delivery"
    DELIVERED = "Delivered", "Delivered"


# The only checkpoint with a side effect on the order.
COMPLETING_STATUS = TrackingStatus.DELIVERED
