import logging
from collections.abc import Mapping

from django.conf import settings
from django.db import DatabaseError, transaction
from treebeard.exceptions import InvalidMoveToDescendant

from utils.exceptions import (
    BusinessLogicException,
    PermissionDeniedException,
    PersistenceException,
    ResourceNotFoundException,
    ValidationException,
)
from .models import MenuItem
from .options import OptionsEditor
from .serializers import (
    MenuDeleteActionSerializer,
    MenuEditActionSerializer,
    MenuItemFormSerializer,
    MenuItemSerializer,
)
from .utils import build_menu_tree, render_tree_html

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = 'Operation cancelled.'
SAVED_MESSAGE = 'Menu item saved.'
DELETED_MESSAGE = 'Done! Menu removed.'


def _reload(item):
    # treebeard 구조 변경 후 메모리상의 lft/rgt 값은 오래된 값일 수 있음
    return MenuItem.objects.get(pk=item.pk)


class MenuItemStore:
    """메뉴 항목 저장소 (nested-set 트리 CRUD + 조회)"""

    @staticmethod
    def get_root_nodes():
        """루트 메뉴 목록 조회 (생성 순서)"""
        return MenuItem.get_root_nodes()

    @staticmethod
    def get(item_id):
        """메뉴 항목 조회"""
        try:
            return MenuItem.objects.get(pk=item_id)
        except MenuItem.DoesNotExist:
            raise ResourceNotFoundException(
                message=f'Menu item {item_id} was not found.',
                field='id',
            )

    @staticmethod
    def get_tree(item):
        """
        루트 메뉴의 하위 계층 구조 조회

        Returns:
            list: [{'id', 'title', 'options', 'children': [...]}, ...] (루트 자신은 제외)

        Raises:
            BusinessLogicException: 루트가 아닌 항목인 경우
        """
        if not item.is_root():
            raise BusinessLogicException(field='id')
        return build_menu_tree(MenuItem.get_tree(item))

    @classmethod
    def get_html_tree(cls, item, child_open=None, node_decorator=None, tree=None):
        """루트 메뉴의 하위 계층을 중첩 <ul> HTML 로 변환 (이미 조회한 tree 가 있으면 재사용)"""
        if tree is None:
            tree = cls.get_tree(item)
        return render_tree_html(tree, child_open, node_decorator)

    @staticmethod
    def create_or_update(item, parent=None, after=None, move=False):
        """
        메뉴 항목 저장

        신규 항목:
            after 가 있으면 after 바로 뒤 형제로, parent 가 있으면 첫 번째 자식으로,
            둘 다 없으면 새 루트로 삽입한 뒤 자리표시자 자식을 하나 만든다.
        기존 항목:
            title / options 만 갱신. move=True 이고 parent 가 바뀐 경우
            parent 의 첫 번째 자식으로 이동 (parent=None 이면 루트 목록 끝으로).

        Raises:
            ValidationException: 자기 자신/하위 항목 아래로 이동하려는 경우
            PersistenceException: DB 처리 실패
        """
        try:
            with transaction.atomic():
                if item.pk is None:
                    item = MenuItemStore._insert(item, parent, after)
                    item.add_child(title=settings.MENU_DUMMY_CHILD_TITLE, options={})
                    logger.info(f"Menu item created: {item.pk} ({item.title})")
                else:
                    if move:
                        MenuItemStore._move(item, parent)
                    current = _reload(item)
                    current.title = item.title
                    current.options = item.options
                    current.save(update_fields=['title', 'options'])
                    logger.info(f"Menu item updated: {current.pk} ({current.title})")
                return _reload(item)
        except InvalidMoveToDescendant:
            raise ValidationException(
                message='A menu item cannot be moved below itself.',
                field='parent',
            )
        except DatabaseError as e:
            logger.error(f"Menu item save failed: {e}", exc_info=True)
            raise PersistenceException(detail=str(e))

    @staticmethod
    def _insert(item, parent, after):
        if after is not None:
            return _reload(after).add_sibling('right', instance=item)
        if parent is None:
            return MenuItem.add_root(instance=item)

        parent = _reload(parent)
        if parent.is_leaf():
            return parent.add_child(instance=item)
        return parent.get_first_child().add_sibling('first-sibling', instance=item)

    @staticmethod
    def _move(item, parent):
        current = _reload(item)
        current_parent_id = current.parent_id
        new_parent_id = parent.pk if parent is not None else None
        if current_parent_id == new_parent_id:
            return

        if parent is None:
            current.move(MenuItem.get_last_root_node(), 'last-sibling')
        else:
            current.move(_reload(parent), 'first-child')
        logger.info(f"Menu item moved: {current.pk} -> parent {new_parent_id}")

    @staticmethod
    def delete(item):
        """메뉴 항목과 모든 하위 항목 삭제 (복구 불가)"""
        item_id = item.pk
        try:
            with transaction.atomic():
                _reload(item).delete()
        except DatabaseError as e:
            logger.error(f"Menu item delete failed: {e}", exc_info=True)
            raise PersistenceException(detail=str(e))
        logger.info(f"Menu item deleted with subtree: {item_id}")


class MenuAdminService:
    """메뉴 관리 화면 유스케이스 (목록 / 트리 보기 / 편집 / 삭제)"""

    @staticmethod
    def list_menus():
        """루트 메뉴 목록"""
        root_nodes = MenuItemStore.get_root_nodes()
        return {
            'rootNodes': MenuItemSerializer(root_nodes, many=True).data,
        }

    @staticmethod
    def view_menu(item_id, child_open=None, node_decorator=None):
        """
        루트 메뉴 트리 보기

        Raises:
            ResourceNotFoundException: 항목이 없는 경우
            PermissionDeniedException: 루트가 아닌 항목인 경우
        """
        item = MenuItemStore.get(item_id)
        if not item.is_root():
            raise PermissionDeniedException()
        tree = MenuItemStore.get_tree(item)
        return {
            'menu': MenuItemSerializer(item).data,
            'tree': tree,
            'html': MenuItemStore.get_html_tree(item, child_open, node_decorator, tree=tree),
        }

    @staticmethod
    def get_edit_form(item_id=None):
        """편집 폼 초기값"""
        form = {
            'id': None,
            'title': '',
            'options': [],
            'parent': None,
            'root': None,
        }
        if item_id is not None:
            item = MenuItemStore.get(item_id)
            form.update({
                'id': item.pk,
                'title': item.title,
                'options': OptionsEditor.explode(item.options),
                'parent': item.parent_id,
                'root': item.root_id,
            })
        return {
            'form': form,
            'keyChoices': OptionsEditor.key_choices(),
        }

    @staticmethod
    def edit_menu(item_id, data):
        """
        편집 폼 제출 처리

        Returns:
            dict: status 가 'success' / 'cancelled' / 'invalid' 중 하나
        """
        item = MenuItemStore.get(item_id) if item_id is not None else None

        action = MenuAdminService._get_action(MenuEditActionSerializer, data)
        if action == 'cancel':
            return MenuAdminService._cancelled()

        serializer = MenuItemFormSerializer(instance=item, data=data)
        if not serializer.is_valid():
            return {
                'status': 'invalid',
                'errors': serializer.errors,
                'form': data,
            }

        validated = serializer.validated_data
        created = item is None
        if created:
            item = MenuItem(options={})
        item.title = validated['title']
        if 'options' in validated:
            item.options = validated['options']

        item = MenuItemStore.create_or_update(
            item,
            parent=validated.get('parent'),
            after=validated.get('after'),
            move=not created and 'parent' in validated,
        )
        return {
            'status': 'success',
            'created': created,
            'message': SAVED_MESSAGE,
            'menu': MenuItemSerializer(item).data,
        }

    @staticmethod
    def get_delete_form(item_id):
        """삭제 확인 폼"""
        item = MenuItemStore.get(item_id)
        return {
            'form': {
                'entity': MenuItemSerializer(item).data,
            },
        }

    @staticmethod
    def delete_menu(item_id, data):
        """삭제 폼 제출 처리 (delete / cancel)"""
        item = MenuItemStore.get(item_id)

        action = MenuAdminService._get_action(MenuDeleteActionSerializer, data)
        if action == 'cancel':
            return MenuAdminService._cancelled()

        MenuItemStore.delete(item)
        return {
            'status': 'success',
            'message': DELETED_MESSAGE,
        }

    @staticmethod
    def _get_action(serializer_class, data):
        if not isinstance(data, Mapping):
            raise ValidationException(message='Form data must be an object.')
        serializer = serializer_class(data={'action': data.get('action')} if data.get('action') else {})
        if not serializer.is_valid():
            raise ValidationException(
                message='Unknown form action.',
                detail=serializer.errors.get('action'),
                field='action',
            )
        return serializer.validated_data['action']

    @staticmethod
    def _cancelled():
        return {
            'status': 'cancelled',
            'message': CANCELLED_MESSAGE,
        }
