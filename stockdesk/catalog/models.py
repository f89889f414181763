import uuid

from django.db import models


def new_record_id():
    return uuid.uuid4().hex


class CarLine(models.TextChoices):
    """Brand / vehicle line a part belongs to"""
    FORD = 'FORD', 'FORD'
    CHEVROLET = 'CHEVROLET', 'CHEVROLET'
    DODGE = 'DODGE', 'DODGE'
    MERCEDES = 'MERCEDES BENZ', 'MERCEDES BENZ'
    FIAT = 'FIAT', 'FIAT'
    VOLKSWAGEN = 'VOLKSWAGEN', 'VOLKSWAGEN'
    PEUGEOT = 'PEUGEOT', 'PEUGEOT'
    CITROEN = 'CITROEN', 'CITROEN'
    TOYOTA = 'TOYOTA', 'TOYOTA'
    RENAULT = 'RENAULT', 'RENAULT'
    HONDA = 'HONDA', 'HONDA'
    UNIVERSAL = 'UNIVERSAL', 'UNIVERSAL'


class Product(models.Model):
    """Product document of the remote store"""
    id = models.CharField(primary_key=True, max_length=32, default=new_record_id, editable=False)
    code = models.CharField(max_length=50, db_index=True)  # e.g. 796D, not unique
    name = models.CharField(max_length=200)
    line = models.CharField(max_length=30, choices=CarLine.choices, default=CarLine.UNIVERSAL, db_index=True)
    details = models.TextField(blank=True, default='')
    stock = models.IntegerField(default=0)
    price = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)  # local currency (ARS)
    image_url = models.CharField(max_length=500, null=True, blank=True)
    price_usd = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    details_en = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.code} - {self.name}"

    class Meta:
        db_table = 'products'
