from rest_framework.permissions import BasePermission


# API 권한 체크용 Permission 클래스
class IsAdmin(BasePermission):
    """관리자(staff 또는 superuser)만 접근 가능"""
    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return request.user.is_staff or request.user.is_superuser
