from rest_framework import serializers
from .models import MenuItem
from .options import OptionsEditor

# 프론트에 내려줄 형태
# MenuItem 직렬화
class MenuItemSerializer(serializers.ModelSerializer):
    parent = serializers.SerializerMethodField()
    root = serializers.SerializerMethodField()

    class Meta:
        model = MenuItem
        fields = [
            "id",
            "title",
            "options",
            "parent",
            "root",
            "depth",
        ]

    def get_parent(self, obj):
        return obj.parent_id

    def get_root(self, obj):
        return obj.root_id


# 편집 폼의 옵션 한 줄 (key/value)
class OptionRowSerializer(serializers.Serializer):
    key = serializers.CharField(required=False, allow_blank=True, default='')
    value = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='', trim_whitespace=False)


# 편집 폼 (title, options, root, parent, after)
class MenuItemFormSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    options = OptionRowSerializer(many=True, required=False)
    root = serializers.PrimaryKeyRelatedField(
        queryset=MenuItem.objects.all(), required=False, allow_null=True
    )
    parent = serializers.PrimaryKeyRelatedField(
        queryset=MenuItem.objects.all(), required=False, allow_null=True
    )
    # 새 항목을 이 형제 바로 뒤에 삽입 (jsTree 드래그 위치)
    after = serializers.PrimaryKeyRelatedField(
        queryset=MenuItem.objects.all(), required=False, allow_null=True
    )

    def validate_options(self, rows):
        return OptionsEditor().collapse(rows)

    def validate(self, attrs):
        instance = self.instance
        root = attrs.get('root')
        parent = attrs.get('parent')
        after = attrs.get('after')

        if after is not None:
            if instance is not None:
                raise serializers.ValidationError({'after': 'Only new menu items can be positioned after a sibling.'})
            if after.is_root():
                raise serializers.ValidationError({'after': 'Menu items cannot be placed next to a root menu.'})
            after_parent = after.get_parent()
            if parent is None:
                parent = after_parent
                attrs['parent'] = parent
            elif after_parent.pk != parent.pk:
                raise serializers.ValidationError({'after': 'The sibling must belong to the selected parent.'})

        # root 만 지정된 경우 해당 메뉴의 최상위 항목으로 배치
        if parent is None and root is not None and instance is None:
            parent = root
            attrs['parent'] = parent

        if parent is not None and root is not None and parent.root_id != root.pk:
            raise serializers.ValidationError({'parent': 'The parent must belong to the selected menu.'})

        if instance is not None and parent is not None:
            if parent.pk == instance.pk or parent.is_descendant_of(instance):
                raise serializers.ValidationError({'parent': 'A menu item cannot be moved below itself.'})

        return attrs


# save / cancel 버튼 구분
class MenuEditActionSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=['save', 'cancel'], default='save')


# delete / cancel 버튼 구분
class MenuDeleteActionSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=['delete', 'cancel'])
