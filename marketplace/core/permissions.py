"""Role gates for the vendor / supplier / admin sides of the marketplace"""
from rest_framework.permissions import BasePermission, SAFE_METHODS


class RolePermission(BasePermission):
    """Allow authenticated users whose role is in ``allowed_roles``"""
    allowed_roles = ()
    message = 'Insufficient permissions'

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if 'admin' in self.allowed_roles and user.is_superuser:
            return True
        return user.role in self.allowed_roles


class IsVendor(RolePermission):
    allowed_roles = ('vendor',)


class IsSupplier(RolePermission):
    allowed_roles = ('supplier',)


class IsMarketplaceAdmin(RolePermission):
    allowed_roles = ('admin',)


class IsVendorOrAdmin(RolePermission):
    allowed_roles = ('vendor', 'admin')


class IsSupplierOrAdmin(RolePermission):
    allowed_roles = ('supplier', 'admin')


class IsMarketplaceAdminOrReadOnly(IsMarketplaceAdmin):
    """Anyone may read; only admins may write"""

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return super().has_permission(request, view)
