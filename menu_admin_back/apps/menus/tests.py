import json
import os
import tempfile
from importlib.metadata import version
from io import StringIO
from unittest import mock

from django.contrib import admin
from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DatabaseError
from django.test import RequestFactory, SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework import serializers, status
from rest_framework.test import APITestCase

from utils.exceptions import (
    BusinessLogicException,
    PermissionDeniedException,
    PersistenceException,
    ResourceNotFoundException,
    ValidationException,
)
from .admin import MenuItemAdmin
from .models import MenuItem
from .options import OptionsEditor, coerce_boolean
from .services import MenuAdminService, MenuItemStore
from .utils import find_nested_set_problems, render_tree_html

DUMMY = 'dummy child'


def create_menu(title, parent=None, after=None, options=None):
    item = MenuItem(title=title, options=options or {})
    return MenuItemStore.create_or_update(item, parent=parent, after=after)


def titles(nodes):
    return [node['title'] for node in nodes]


class OptionsEditorTest(SimpleTestCase):
    """옵션 편집기 테스트"""

    def setUp(self):
        self.editor = OptionsEditor()

    def test_boolean_coercion_table(self):
        """boolean 변환표"""
        inputs = ['1', 'true', 'yes', '0', 'false', 'no', '']
        expected = [True, True, True, False, False, False, False]
        self.assertEqual([coerce_boolean(value) for value in inputs], expected)

    def test_boolean_coercion_is_case_and_space_insensitive(self):
        self.assertTrue(coerce_boolean(' YES '))
        self.assertTrue(coerce_boolean('On'))
        self.assertFalse(coerce_boolean('off'))
        self.assertFalse(coerce_boolean(None))
        self.assertTrue(coerce_boolean(True))

    def test_explode_then_collapse_restores_mapping(self):
        """펼친 뒤 다시 합치면 원래 매핑"""
        options = {
            'route': 'home',
            'routeParameters': {'id': 5, 'slug': 'main'},
            'attributes': ['a', 'b'],
            'display': False,
            'displayChildren': True,
            'label': 'Home',
            'current': '',
        }
        rows = self.editor.explode(options)
        self.assertEqual([row['key'] for row in rows], list(options))
        self.assertEqual(self.editor.collapse(rows), options)

    def test_explode_renders_values_as_strings(self):
        rows = self.editor.explode({'extras': {'icon': 'fa-home'}, 'display': True})
        self.assertEqual(rows, [
            {'key': 'extras', 'value': '{"icon": "fa-home"}'},
            {'key': 'display', 'value': 'true'},
        ])

    def test_collapse_drops_empty_rows(self):
        rows = [
            {'key': '', 'value': ''},
            {'key': 'uri', 'value': '/about'},
            {'key': '  ', 'value': None},
        ]
        self.assertEqual(self.editor.collapse(rows), {'uri': '/about'})

    def test_collapse_accepts_labels(self):
        rows = [
            {'key': 'display+', 'value': 'yes'},
            {'key': 'linkAttributes*', 'value': '{"target": "_blank"}'},
        ]
        self.assertEqual(self.editor.collapse(rows), {
            'display': True,
            'linkAttributes': {'target': '_blank'},
        })

    def test_unrecognized_key(self):
        with self.assertRaises(serializers.ValidationError) as ctx:
            self.editor.collapse([{'key': 'color', 'value': 'red'}])
        self.assertEqual(ctx.exception.detail[0][0].code, 'unrecognized_key')
        self.assertIn('unrecognized key', str(ctx.exception.detail[0][0]))

    def test_value_without_key_is_rejected(self):
        with self.assertRaises(serializers.ValidationError) as ctx:
            self.editor.collapse([{'key': '', 'value': 'orphan'}])
        self.assertEqual(ctx.exception.detail[0][0].code, 'unrecognized_key')

    def test_duplicate_key(self):
        rows = [
            {'key': 'route', 'value': 'home'},
            {'key': 'route', 'value': 'about'},
        ]
        with self.assertRaises(serializers.ValidationError) as ctx:
            self.editor.collapse(rows)
        self.assertEqual(list(ctx.exception.detail), [1])
        self.assertEqual(ctx.exception.detail[1][0].code, 'duplicate_key')

    def test_duplicate_key_through_label(self):
        rows = [
            {'key': 'display', 'value': '1'},
            {'key': 'display+', 'value': '0'},
        ]
        with self.assertRaises(serializers.ValidationError) as ctx:
            self.editor.collapse(rows)
        self.assertEqual(ctx.exception.detail[1][0].code, 'duplicate_key')

    def test_malformed_structured_value(self):
        for value in ['{not json', '', '5', '"text"']:
            with self.subTest(value=value):
                with self.assertRaises(serializers.ValidationError) as ctx:
                    self.editor.collapse([{'key': 'attributes', 'value': value}])
                self.assertEqual(ctx.exception.detail[0][0].code, 'malformed_value')

    def test_errors_are_collected_per_row(self):
        rows = [
            {'key': 'bogus', 'value': 'x'},
            {'key': 'uri', 'value': '/ok'},
            {'key': 'extras', 'value': '[1, 2'},
        ]
        with self.assertRaises(serializers.ValidationError) as ctx:
            self.editor.collapse(rows)
        self.assertEqual(sorted(ctx.exception.detail), [0, 2])

    def test_validate_mapping(self):
        self.assertEqual(
            OptionsEditor.validate_mapping({'route': 'home', 'display': True}),
            {'route': 'home', 'display': True},
        )
        with self.assertRaises(serializers.ValidationError):
            OptionsEditor.validate_mapping({'display': 'yes'})
        with self.assertRaises(serializers.ValidationError):
            OptionsEditor.validate_mapping({'attributes': 'class=x'})
        with self.assertRaises(serializers.ValidationError):
            OptionsEditor.validate_mapping({'unknown': 1})

    def test_validate_mapping_requires_string_scalars(self):
        """scalar 키는 문자열만 허용 (편집 화면 왕복 시 타입이 바뀌지 않도록)"""
        for value in [True, 5, None, ['home']]:
            with self.subTest(value=value):
                with self.assertRaises(serializers.ValidationError) as ctx:
                    OptionsEditor.validate_mapping({'current': value})
                self.assertIn('current', ctx.exception.detail)

    def test_malformed_first_occurrence_still_counts_for_duplicates(self):
        rows = [
            {'key': 'extras*', 'value': '{bad'},
            {'key': 'extras', 'value': '{}'},
        ]
        with self.assertRaises(serializers.ValidationError) as ctx:
            self.editor.collapse(rows)
        self.assertEqual(ctx.exception.detail[0][0].code, 'malformed_value')
        self.assertEqual(ctx.exception.detail[1][0].code, 'duplicate_key')

    def test_key_choices_keep_suffix_labels(self):
        choices = OptionsEditor.key_choices()
        self.assertEqual(len(choices), 12)
        self.assertIn({'label': 'routeParameters*', 'key': 'routeParameters'}, choices)
        self.assertIn({'label': 'displayChildren+', 'key': 'displayChildren'}, choices)


class RenderTreeHtmlTest(SimpleTestCase):
    """트리 HTML 렌더링 테스트"""

    def test_default_markup(self):
        tree = [
            {'id': 2, 'title': 'A', 'children': [{'id': 3, 'title': 'B', 'children': []}]},
        ]
        self.assertEqual(
            render_tree_html(tree),
            '<ul><li class="jstree-open" id="node_2"><a href="#">A (2)</a>'
            '<ul><li class="jstree-open" id="node_3"><a href="#">B (3)</a></li></ul>'
            '</li></ul>',
        )

    def test_titles_are_escaped(self):
        html = render_tree_html([{'id': 1, 'title': '<b>x</b>', 'children': []}])
        self.assertIn('&lt;b&gt;x&lt;/b&gt;', html)

    def test_custom_callbacks(self):
        html = render_tree_html(
            [{'id': 1, 'title': 'A', 'children': []}],
            child_open=lambda node: '<li>',
            node_decorator=lambda node: node['title'],
        )
        self.assertEqual(html, '<ul><li>A</li></ul>')

    def test_empty_tree(self):
        self.assertEqual(render_tree_html([]), '')


class MenuItemStoreTest(TestCase):
    """메뉴 저장소 테스트"""

    def test_create_root_adds_dummy_child(self):
        """새 메뉴 생성 시 자리표시자 자식 1개"""
        root = create_menu('Main')

        self.assertTrue(root.is_root())
        self.assertEqual(root.root_id, root.pk)
        self.assertIsNone(root.parent_id)
        children = list(root.get_children())
        self.assertEqual(len(children), 1)
        self.assertEqual(children[0].title, DUMMY)

    def test_create_child_is_inserted_first(self):
        root = create_menu('Main')
        first = create_menu('First', parent=root)
        second = create_menu('Second', parent=root)

        root = MenuItem.objects.get(pk=root.pk)
        self.assertEqual([c.title for c in root.get_children()], ['Second', 'First', DUMMY])
        self.assertEqual(MenuItem.objects.get(pk=first.pk).parent_id, root.pk)
        self.assertEqual(second.root_id, root.pk)
        self.assertEqual([c.title for c in second.get_children()], [DUMMY])

    def test_create_after_sibling(self):
        root = create_menu('Main')
        first = create_menu('First', parent=root)
        create_menu('Next', after=first)

        root = MenuItem.objects.get(pk=root.pk)
        self.assertEqual([c.title for c in root.get_children()], ['First', 'Next', DUMMY])

    def test_root_nodes_are_listed_once_in_order(self):
        main = create_menu('Main')
        create_menu('Child', parent=main)
        footer = create_menu('Footer')

        roots = list(MenuItemStore.get_root_nodes())
        self.assertEqual([r.pk for r in roots], [main.pk, footer.pk])

    def test_get_tree(self):
        root = create_menu('Main')
        child = create_menu('Child', parent=root)

        tree = MenuItemStore.get_tree(MenuItem.objects.get(pk=root.pk))
        self.assertEqual(titles(tree), ['Child', DUMMY])
        self.assertEqual(tree[0]['id'], child.pk)
        self.assertEqual(titles(tree[0]['children']), [DUMMY])

    def test_get_tree_rejects_non_root(self):
        root = create_menu('Main')
        child = create_menu('Child', parent=root)

        with self.assertRaises(BusinessLogicException):
            MenuItemStore.get_tree(child)

    def test_get_missing_item(self):
        with self.assertRaises(ResourceNotFoundException):
            MenuItemStore.get(999)

    def test_update_keeps_position(self):
        root = create_menu('Main')
        child = create_menu('Child', parent=root)

        child.title = 'Renamed'
        child.options = {'route': 'home'}
        MenuItemStore.create_or_update(child, parent=root, move=True)

        root = MenuItem.objects.get(pk=root.pk)
        self.assertEqual([c.title for c in root.get_children()], ['Renamed', DUMMY])
        self.assertEqual(MenuItem.objects.get(pk=child.pk).options, {'route': 'home'})
        self.assertEqual(MenuItem.objects.filter(title=DUMMY).count(), 2)

    def test_move_to_other_parent(self):
        main = create_menu('Main')
        footer = create_menu('Footer')
        child = create_menu('Child', parent=main)

        MenuItemStore.create_or_update(child, parent=footer, move=True)

        child = MenuItem.objects.get(pk=child.pk)
        self.assertEqual(child.parent_id, footer.pk)
        self.assertEqual(child.root_id, footer.pk)
        self.assertEqual([c.title for c in child.get_children()], [DUMMY])
        self.assertEqual(find_nested_set_problems(MenuItem.get_tree()), [])

    def test_move_to_root(self):
        main = create_menu('Main')
        child = create_menu('Child', parent=main)

        MenuItemStore.create_or_update(child, parent=None, move=True)

        roots = [r.title for r in MenuItemStore.get_root_nodes()]
        self.assertEqual(roots, ['Main', 'Child'])
        self.assertEqual(find_nested_set_problems(MenuItem.get_tree()), [])

    def test_delete_removes_subtree(self):
        """삭제 시 하위 항목 모두 삭제"""
        main = create_menu('Main')
        child = create_menu('Child', parent=main)
        grandchild = create_menu('Grandchild', parent=child)
        footer = create_menu('Footer')
        removed = [child.pk, grandchild.pk] + [
            c.pk for c in MenuItem.objects.get(pk=grandchild.pk).get_children()
        ]

        MenuItemStore.delete(child)

        self.assertFalse(MenuItem.objects.filter(pk__in=removed).exists())
        tree = MenuItemStore.get_tree(MenuItem.objects.get(pk=main.pk))
        self.assertEqual(titles(tree), [DUMMY])
        self.assertEqual([r.pk for r in MenuItemStore.get_root_nodes()], [main.pk, footer.pk])
        self.assertEqual(find_nested_set_problems(MenuItem.get_tree()), [])

    def test_delete_root(self):
        main = create_menu('Main')
        create_menu('Child', parent=main)

        MenuItemStore.delete(main)

        self.assertEqual(MenuItem.objects.count(), 0)

    def test_create_rolls_back_when_dummy_child_fails(self):
        """자리표시자 자식 생성 실패 시 새 항목까지 롤백"""
        with mock.patch.object(MenuItem, 'add_child', side_effect=DatabaseError('disk full')):
            with self.assertRaises(PersistenceException) as ctx:
                create_menu('Main')

        self.assertEqual(ctx.exception.code, 'ERR_601')
        self.assertEqual(ctx.exception.detail_info, 'disk full')
        self.assertEqual(MenuItem.objects.count(), 0)

    def test_delete_failure_keeps_subtree(self):
        main = create_menu('Main')
        create_menu('Child', parent=main)
        count = MenuItem.objects.count()

        with mock.patch.object(MenuItem, 'delete', side_effect=DatabaseError('locked')):
            with self.assertRaises(PersistenceException):
                MenuItemStore.delete(main)

        self.assertEqual(MenuItem.objects.count(), count)

    def test_nested_set_invariant_after_inserts(self):
        main = create_menu('Main')
        a = create_menu('A', parent=main)
        create_menu('B', parent=a)
        create_menu('C', after=a)
        create_menu('Footer')

        self.assertEqual(find_nested_set_problems(MenuItem.get_tree()), [])


class NestedSetProblemsTest(SimpleTestCase):

    class Node:
        def __init__(self, id, tree_id, lft, rgt, depth):
            self.id, self.tree_id, self.lft, self.rgt, self.depth = id, tree_id, lft, rgt, depth

    def test_detects_child_outside_parent_bounds(self):
        nodes = [
            self.Node(1, 1, 1, 4, 1),
            self.Node(2, 1, 2, 3, 2),
            self.Node(3, 1, 5, 6, 2),
        ]
        problems = find_nested_set_problems(nodes)
        self.assertTrue(problems)

    def test_valid_forest(self):
        nodes = [
            self.Node(1, 1, 1, 4, 1),
            self.Node(2, 1, 2, 3, 2),
            self.Node(3, 2, 1, 2, 1),
        ]
        self.assertEqual(find_nested_set_problems(nodes), [])


class MenuAdminServiceTest(TestCase):
    """유스케이스 테스트"""

    def test_view_non_root_is_denied(self):
        root = create_menu('Main')
        child = create_menu('Child', parent=root)

        with self.assertRaises(PermissionDeniedException):
            MenuAdminService.view_menu(child.pk)

    def test_edit_cancel_does_not_persist(self):
        result = MenuAdminService.edit_menu(None, {'action': 'cancel', 'title': 'Main'})

        self.assertEqual(result['status'], 'cancelled')
        self.assertEqual(result['message'], 'Operation cancelled.')
        self.assertEqual(MenuItem.objects.count(), 0)

    def test_edit_invalid_does_not_persist(self):
        result = MenuAdminService.edit_menu(None, {
            'action': 'save',
            'title': 'Main',
            'options': [{'key': 'attributes', 'value': 'nope'}],
        })

        self.assertEqual(result['status'], 'invalid')
        self.assertIn('options', result['errors'])
        self.assertEqual(MenuItem.objects.count(), 0)

    def test_edit_form_explodes_options(self):
        root = create_menu('Main', options={'route': 'home', 'display': True})

        form = MenuAdminService.get_edit_form(root.pk)['form']
        self.assertEqual(form['options'], [
            {'key': 'route', 'value': 'home'},
            {'key': 'display', 'value': 'true'},
        ])
        self.assertEqual(form['root'], root.pk)
        self.assertIsNone(form['parent'])

    def test_resubmitting_edit_form_keeps_options(self):
        """편집 폼을 그대로 다시 제출하면 옵션 매핑이 바뀌지 않음"""
        options = {
            'current': 'yes',
            'route': 'home',
            'display': False,
            'extras': {'icon': 'fa-home'},
        }
        root = create_menu('Main', options=options)

        form = MenuAdminService.get_edit_form(root.pk)['form']
        result = MenuAdminService.edit_menu(root.pk, {
            'title': form['title'],
            'options': form['options'],
        })

        self.assertEqual(result['status'], 'success')
        self.assertEqual(MenuItem.objects.get(pk=root.pk).options, options)

    def test_view_builds_tree_once(self):
        root = create_menu('Main')

        with mock.patch.object(MenuItemStore, 'get_tree', wraps=MenuItemStore.get_tree) as get_tree:
            result = MenuAdminService.view_menu(root.pk)

        get_tree.assert_called_once()
        self.assertEqual(titles(result['tree']), [DUMMY])
        self.assertIn(DUMMY, result['html'])

    def test_non_mapping_form_data_is_rejected(self):
        root = create_menu('Main')

        with self.assertRaises(ValidationException):
            MenuAdminService.edit_menu(None, ['x'])
        with self.assertRaises(ValidationException):
            MenuAdminService.delete_menu(root.pk, 'delete')
        self.assertTrue(MenuItem.objects.filter(pk=root.pk).exists())


class MenuItemAdminTest(TestCase):
    """Django admin 폼 테스트"""

    def setUp(self):
        self.item = create_menu('Main')
        self.form_class = MenuItemAdmin.form

    def form_data(self, options):
        return {
            'title': 'Main',
            'options': json.dumps(options),
            '_position': 'first-child',
            '_ref_node_id': '',
        }

    def test_rejects_unknown_option_key(self):
        form = self.form_class(data=self.form_data({'color': 'red'}), instance=self.item)

        self.assertFalse(form.is_valid())
        self.assertIn('options', form.errors)

    def test_rejects_non_string_scalar(self):
        form = self.form_class(data=self.form_data({'current': True}), instance=self.item)

        self.assertFalse(form.is_valid())
        self.assertIn('options', form.errors)

    def test_accepts_valid_options(self):
        form = self.form_class(data=self.form_data({'route': 'home', 'display': True}), instance=self.item)

        form.is_valid()
        self.assertNotIn('options', form.errors)

    def test_add_is_disabled(self):
        """신규 항목은 자리표시자 자식이 필요하므로 admin 추가 불가"""
        model_admin = MenuItemAdmin(MenuItem, admin.site)

        self.assertFalse(model_admin.has_add_permission(RequestFactory().get('/')))

    def test_treebeard_below_8(self):
        """모델 수준 트리 API 가 제거되기 전 버전"""
        self.assertLess(int(version('django-treebeard').split('.')[0]), 8)


class MenuAdminAPITest(APITestCase):
    """메뉴 관리 API 테스트"""

    def setUp(self):
        User = get_user_model()
        self.admin = User.objects.create_user(
            username='admin1',
            password='testpass123',
            is_staff=True,
        )
        self.user = User.objects.create_user(
            username='user1',
            password='testpass123',
        )
        self.client.force_authenticate(user=self.admin)
        self.list_url = reverse('menus:menu-list')

    def test_requires_admin(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(self.list_url)
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

    def test_list(self):
        main = create_menu('Main')
        create_menu('Child', parent=main)
        create_menu('Footer')

        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([m['title'] for m in response.data['rootNodes']], ['Main', 'Footer'])

    def test_view_root(self):
        main = create_menu('Main')
        child = create_menu('Child', parent=main)

        response = self.client.get(reverse('menus:menu-view', args=[main.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['menu']['id'], main.pk)
        self.assertEqual(titles(response.data['tree']), ['Child', DUMMY])
        self.assertIn(f'id="node_{child.pk}"', response.data['html'])
        self.assertIn(f'<a href="#">Child ({child.pk})</a>', response.data['html'])

    def test_view_non_root_is_forbidden(self):
        main = create_menu('Main')
        child = create_menu('Child', parent=main)

        response = self.client.get(reverse('menus:menu-view', args=[child.pk]))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json()['error']['code'], 'ERR_002')
        self.assertEqual(response.json()['error']['kind'], 'AccessDenied')
        self.assertEqual(
            response.json()['error']['message'],
            'Only root menu items can be opened in the tree view.',
        )

    def test_view_missing(self):
        response = self.client.get(reverse('menus:menu-view', args=[12345]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()['error']['code'], 'ERR_201')

    def test_create_root(self):
        response = self.client.post(reverse('menus:menu-create'), {
            'action': 'save',
            'title': 'Main',
            'options': [
                {'key': 'route', 'value': 'home'},
                {'key': 'display+', 'value': 'yes'},
                {'key': '', 'value': ''},
            ],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'success')
        self.assertEqual(response.data['redirect'], self.list_url)
        menu = MenuItem.objects.get(pk=response.data['menu']['id'])
        self.assertTrue(menu.is_root())
        self.assertEqual(menu.options, {'route': 'home', 'display': True})
        self.assertEqual([c.title for c in menu.get_children()], [DUMMY])

    def test_create_child_with_root_only(self):
        main = create_menu('Main')

        response = self.client.post(reverse('menus:menu-create'), {
            'title': 'Child',
            'root': main.pk,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['menu']['parent'], main.pk)
        self.assertEqual(response.data['menu']['root'], main.pk)

    def test_create_rejects_parent_from_other_menu(self):
        main = create_menu('Main')
        footer = create_menu('Footer')
        child = create_menu('Child', parent=footer)
        count = MenuItem.objects.count()

        response = self.client.post(reverse('menus:menu-create'), {
            'title': 'X',
            'root': main.pk,
            'parent': child.pk,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('parent', response.data['errors'])
        self.assertEqual(MenuItem.objects.count(), count)

    def test_create_blank_title(self):
        response = self.client.post(reverse('menus:menu-create'), {
            'action': 'save',
            'title': '   ',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['status'], 'invalid')
        self.assertIn('title', response.data['errors'])
        self.assertEqual(MenuItem.objects.count(), 0)

    def test_create_invalid_options(self):
        response = self.client.post(reverse('menus:menu-create'), {
            'title': 'Main',
            'options': [
                {'key': 'route', 'value': 'home'},
                {'key': 'route', 'value': 'about'},
            ],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['errors']['options'], {'1': ['duplicate key "route"']})
        self.assertEqual(MenuItem.objects.count(), 0)

    def test_edit_cancel(self):
        main = create_menu('Main')

        response = self.client.post(reverse('menus:menu-edit', args=[main.pk]), {
            'action': 'cancel',
            'title': 'Changed',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'cancelled')
        self.assertEqual(response.data['message'], 'Operation cancelled.')
        self.assertEqual(response.data['redirect'], self.list_url)
        self.assertEqual(MenuItem.objects.get(pk=main.pk).title, 'Main')

    def test_edit_unknown_action(self):
        response = self.client.post(reverse('menus:menu-create'), {
            'action': 'publish',
            'title': 'Main',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['error']['field'], 'action')

    def test_edit_list_body(self):
        response = self.client.post(reverse('menus:menu-create'), [{'title': 'Main'}], format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['error']['code'], 'ERR_101')
        self.assertEqual(MenuItem.objects.count(), 0)

    def test_create_database_failure(self):
        with mock.patch.object(MenuItem, 'add_child', side_effect=DatabaseError('disk full')):
            response = self.client.post(reverse('menus:menu-create'), {
                'action': 'save',
                'title': 'Main',
            }, format='json')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json()['error']['code'], 'ERR_601')
        self.assertEqual(response.json()['error']['kind'], 'PersistenceError')
        self.assertEqual(MenuItem.objects.count(), 0)

    def test_edit_update(self):
        main = create_menu('Main')

        response = self.client.post(reverse('menus:menu-edit', args=[main.pk]), {
            'title': 'Main navigation',
            'options': [{'key': 'extras*', 'value': '{"icon": "fa-bars"}'}],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        main = MenuItem.objects.get(pk=main.pk)
        self.assertEqual(main.title, 'Main navigation')
        self.assertEqual(main.options, {'extras': {'icon': 'fa-bars'}})
        self.assertEqual(MenuItem.objects.count(), 2)

    def test_edit_cannot_move_below_itself(self):
        main = create_menu('Main')
        child = create_menu('Child', parent=main)

        response = self.client.post(reverse('menus:menu-edit', args=[main.pk]), {
            'title': 'Main',
            'parent': child.pk,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('parent', response.data['errors'])

    def test_edit_form(self):
        response = self.client.get(reverse('menus:menu-create'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['form']['id'])
        self.assertEqual(len(response.data['keyChoices']), 12)

    def test_delete_form(self):
        main = create_menu('Main')

        response = self.client.get(reverse('menus:menu-delete', args=[main.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['form']['entity']['title'], 'Main')

    def test_delete(self):
        main = create_menu('Main')
        child = create_menu('Child', parent=main)

        response = self.client.post(reverse('menus:menu-delete', args=[main.pk]), {
            'action': 'delete',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Done! Menu removed.')
        self.assertFalse(MenuItem.objects.filter(pk__in=[main.pk, child.pk]).exists())

        response = self.client.get(self.list_url)
        self.assertEqual(response.data['rootNodes'], [])
        response = self.client.get(reverse('menus:menu-view', args=[main.pk]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_cancel(self):
        main = create_menu('Main')
        count = MenuItem.objects.count()

        response = self.client.post(reverse('menus:menu-delete', args=[main.pk]), {
            'action': 'cancel',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'cancelled')
        self.assertEqual(MenuItem.objects.count(), count)

    def test_delete_requires_action(self):
        main = create_menu('Main')

        response = self.client.post(reverse('menus:menu-delete', args=[main.pk]), {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(MenuItem.objects.filter(pk=main.pk).exists())


class MenuCommandTest(TestCase):
    """관리 명령 테스트"""

    def test_check_menu_tree(self):
        main = create_menu('Main')
        create_menu('Child', parent=main)
        out = StringIO()

        call_command('check_menu_tree', stdout=out)

        self.assertIn('Menu tree OK (4 items)', out.getvalue())

    def test_check_menu_tree_unknown_root(self):
        with self.assertRaises(CommandError):
            call_command('check_menu_tree', root=999, stdout=StringIO())

    def test_export_then_import(self):
        main = create_menu('Main', options={'route': 'home'})
        create_menu('Child', parent=main)

        out = StringIO()
        call_command('export_menu', main.pk, stdout=out)
        exported = json.loads(out.getvalue())
        self.assertEqual(exported[0]['data']['title'], 'Main')

        fd, path = tempfile.mkstemp(suffix='.json')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fp:
                json.dump(exported, fp)
            call_command('import_menu', path, stdout=StringIO())
        finally:
            os.remove(path)

        roots = list(MenuItemStore.get_root_nodes())
        self.assertEqual(len(roots), 2)
        self.assertEqual(roots[1].title, 'Main')
        self.assertEqual(roots[1].options, {'route': 'home'})
        self.assertEqual(titles(MenuItemStore.get_tree(roots[1])), ['Child', DUMMY])

    def test_import_rejects_invalid_options(self):
        bulk = [{'data': {'title': 'Main', 'options': {'display': 'maybe'}}}]
        fd, path = tempfile.mkstemp(suffix='.json')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fp:
                json.dump(bulk, fp)
            with self.assertRaises(CommandError):
                call_command('import_menu', path, stdout=StringIO())
        finally:
            os.remove(path)

        self.assertEqual(MenuItem.objects.count(), 0)

    def test_import_rejects_non_string_scalar(self):
        bulk = [{'data': {'title': 'Main', 'options': {'current': True}}}]
        fd, path = tempfile.mkstemp(suffix='.json')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fp:
                json.dump(bulk, fp)
            with self.assertRaises(CommandError):
                call_command('import_menu', path, stdout=StringIO())
        finally:
            os.remove(path)

        self.assertEqual(MenuItem.objects.count(), 0)
