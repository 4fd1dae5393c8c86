from django.db import models
from treebeard.ns_tree import NS_Node

# MenuItem 모델 설계 (nested-set 트리 + key/value 옵션)

# 메뉴 항목 (루트 = 하나의 메뉴, 자식 = 메뉴 항목)
# lft / rgt / tree_id / depth 는 treebeard 가 관리
class MenuItem(NS_Node):
    id = models.BigAutoField(primary_key=True)
    title = models.CharField(max_length=255)
    options = models.JSONField(default=dict, blank=True)  # {'route': 'home', 'display': True, ...}

    class Meta:
        verbose_name = "menu item"
        verbose_name_plural = "menu items"

    def __str__(self):
        return self.title

    @property
    def parent_id(self):
        """부모 메뉴 ID (루트는 None)"""
        if self.is_root():
            return None
        return self.get_parent().pk

    @property
    def root_id(self):
        """소속 트리의 루트 메뉴 ID (루트는 자기 자신)"""
        if self.is_root():
            return self.pk
        return self.get_root().pk
