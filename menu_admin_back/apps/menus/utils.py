from django.utils.html import format_html

DOM_TREE_NODE_PREFIX = 'node_'


def build_menu_tree(menus):
    """
    nested-set 순서(tree_id, lft)로 정렬된 메뉴 목록을 계층 구조로 변환

    첫 번째 노드보다 깊은 노드만 결과에 포함된다 (시작 노드 자신은 제외).
    """
    menu_map = {}
    tree = []
    stack = []  # (depth, node) - 현재 경로의 조상들

    menus = list(menus)
    if not menus:
        return tree
    base_depth = menus[0].depth

    for menu in menus:
        if menu.depth <= base_depth:
            continue

        node = {
            "id": menu.id,
            "title": menu.title,
            "options": menu.options,
            "children": [],
        }
        menu_map[menu.id] = node

        # 메뉴 : 부모-자식 관계 연결
        while stack and stack[-1][0] >= menu.depth:
            stack.pop()
        if stack:
            stack[-1][1]["children"].append(node)
        else:
            tree.append(node)
        stack.append((menu.depth, node))

    return tree


def find_nested_set_problems(menus):
    """
    nested-set 불변식 검사

    menus 는 (tree_id, lft) 순으로 정렬된 목록이어야 한다.
    모든 하위 노드의 [lft, rgt] 는 조상의 범위 안에 있어야 하고 depth 는 조상 + 1.

    Returns:
        list: 문제 설명 문자열 목록 (비어 있으면 정상)
    """
    problems = []
    stack = []
    tree_id = None
    tree_size = 0
    root = None

    def close_tree():
        if root is not None and root.rgt != tree_size * 2:
            problems.append(f"tree {tree_id}: root {root.id} rgt={root.rgt}, expected {tree_size * 2}")

    for menu in menus:
        if menu.tree_id != tree_id:
            close_tree()
            tree_id = menu.tree_id
            tree_size = 0
            root = menu
            stack = []

        tree_size += 1
        if menu.lft >= menu.rgt or (menu.rgt - menu.lft) % 2 == 0:
            problems.append(f"node {menu.id}: invalid bounds lft={menu.lft} rgt={menu.rgt}")

        while stack and stack[-1].rgt < menu.lft:
            stack.pop()

        if not stack:
            if menu.lft != 1 or menu.depth != 1:
                problems.append(f"node {menu.id}: orphan in tree {menu.tree_id} (lft={menu.lft}, depth={menu.depth})")
        else:
            ancestor = stack[-1]
            if not (ancestor.lft < menu.lft and menu.rgt < ancestor.rgt):
                problems.append(f"node {menu.id}: bounds outside parent {ancestor.id}")
            if menu.depth != ancestor.depth + 1:
                problems.append(f"node {menu.id}: depth {menu.depth}, expected {ancestor.depth + 1}")
        stack.append(menu)

    close_tree()
    return problems


def default_child_open(node):
    return format_html('<li class="jstree-open" id="{}{}">', DOM_TREE_NODE_PREFIX, node["id"])


def default_node_decorator(node):
    return format_html('<a href="#">{} ({})</a>', node["title"], node["id"])


def render_tree_html(nodes, child_open=None, node_decorator=None,
                     root_open='<ul>', root_close='</ul>', child_close='</li>'):
    """
    계층 구조를 중첩 <ul>/<li> HTML 조각으로 변환

    child_open(node) 와 node_decorator(node) 가 반환한 마크업은 그대로 사용되므로
    호출자가 이스케이프를 책임진다. 기본값은 jsTree 용 마크업.
    """
    child_open = child_open or default_child_open
    node_decorator = node_decorator or default_node_decorator

    if not nodes:
        return ''

    parts = [root_open]
    for node in nodes:
        parts.append(str(child_open(node)))
        parts.append(str(node_decorator(node)))
        parts.append(render_tree_html(
            node.get("children") or [],
            child_open,
            node_decorator,
            root_open,
            root_close,
            child_close,
        ))
        parts.append(child_close)
    parts.append(root_close)
    return ''.join(parts)
