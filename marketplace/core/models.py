from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Marketplace account; the role decides which side of the market it trades on"""
    ROLE_VENDOR = 'vendor'
    ROLE_SUPPLIER = 'supplier'
    ROLE_ADMIN = 'admin'
    ROLE_CHOICES = [
        (ROLE_VENDOR, 'Vendor'),
        (ROLE_SUPPLIER, 'Supplier'),
        (ROLE_ADMIN, 'Admin'),
    ]

    email = models.EmailField(unique=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_VENDOR, db_index=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    address = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    def __str__(self):
        return f"{self.email} ({self.role})"

    @property
    def is_vendor(self):
        return self.role == self.ROLE_VENDOR

    @property
    def is_supplier(self):
        return self.role == self.ROLE_SUPPLIER

    @property
    def is_marketplace_admin(self):
        return self.role == self.ROLE_ADMIN or self.is_superuser

    class Meta:
        db_table = 'users'


class AuditLog(models.Model):
    """Audit log for marketplace operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('order_place', 'Order Placed'),
        ('order_status', 'Order Status Changed'),
        ('order_cancel', 'Order Cancelled'),
        ('cart_checkout', 'Cart Checkout'),
        ('offer_create', 'Supply Offer Created'),
        ('offer_status', 'Supply Offer Status Changed'),
        ('request_respond', 'Special Request Response'),
        ('request_accept', 'Special Request Response Accepted'),
        ('user_status', 'User Status Changed'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., order number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.action} {self.model_name}#{self.object_id}"

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_66e0b1_idx'),
            models.Index(fields=['action'], name='audit_logs_action_1c4a5e_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_n_5f1f7a_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_object__9b2d3c_idx'),
        ]
