from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

from stockdesk.catalog.models import new_record_id


class Order(models.Model):
    """Order document: an immutable snapshot of the cart at checkout"""
    STATUS_CHOICES = [
        ('completed', 'Completed'),
        ('pending', 'Pending'),
    ]

    id = models.CharField(primary_key=True, max_length=32, default=new_record_id, editable=False)
    customer_name = models.CharField(max_length=255)
    date = models.DateTimeField()
    items = models.JSONField(default=list, encoder=DjangoJSONEncoder)  # product snapshots with quantity
    total_items = models.IntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='completed')

    def __str__(self):
        return f"{self.id[:8].upper()} - {self.customer_name}"

    class Meta:
        db_table = 'orders'
        ordering = ['-date']
