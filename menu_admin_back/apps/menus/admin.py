from django import forms
from django.contrib import admin
from rest_framework import serializers
from treebeard.admin import TreeAdmin
from treebeard.forms import MoveNodeForm, movenodeform_factory

from .models import MenuItem
from .options import OptionsEditor


class MenuItemAdminForm(MoveNodeForm):
    """Admin 편집 폼. options 는 API 와 같은 규칙으로 검증"""

    def clean_options(self):
        options = self.cleaned_data.get('options')
        try:
            return OptionsEditor.validate_mapping(options)
        except serializers.ValidationError as e:
            raise forms.ValidationError(_flatten_errors(e.detail))


def _flatten_errors(detail):
    if isinstance(detail, dict):
        return [f'{key}: {message}' for key, messages in detail.items() for message in messages]
    return [str(message) for message in detail]


# Admin 등록 (드래그 앤 드롭 트리 정렬)
# 신규 항목은 자리표시자 자식이 함께 생성되어야 하므로 API 로만 추가
@admin.register(MenuItem)
class MenuItemAdmin(TreeAdmin):
    form = movenodeform_factory(MenuItem, form=MenuItemAdminForm, fields=["title", "options"])
    list_display = ("title", "id")

    def has_add_permission(self, request):
        return False
