from django.contrib import messages
from django.urls import reverse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.common.permission import IsAdmin
from .services import MenuAdminService


def _finish(request, result, success_status=status.HTTP_200_OK):
    """종료 결과(success / cancelled)를 flash 메시지와 함께 목록으로 돌려보냄"""
    messages.info(request._request, result['message'])
    result['redirect'] = reverse('menus:menu-list')
    return Response(result, status=success_status)


# 루트 메뉴 목록
@api_view(['GET'])
@permission_classes([IsAdmin])
def menu_list(request):
    return Response(MenuAdminService.list_menus())


# 루트 메뉴 트리 보기 (jsTree 용 HTML 포함)
@api_view(['GET'])
@permission_classes([IsAdmin])
def menu_view(request, menu_id):
    return Response(MenuAdminService.view_menu(menu_id))


@api_view(['GET', 'POST'])
@permission_classes([IsAdmin])
def menu_edit(request, menu_id=None):
    """
    메뉴 항목 생성 / 수정

    GET: 편집 폼 초기값 (옵션 행 목록 + 키 선택지)
    POST: action=save 저장, action=cancel 취소
    """
    if request.method == 'GET':
        return Response(MenuAdminService.get_edit_form(menu_id))

    result = MenuAdminService.edit_menu(menu_id, request.data)
    if result['status'] == 'invalid':
        return Response(result, status=status.HTTP_400_BAD_REQUEST)

    if result.get('created'):
        return _finish(request, result, status.HTTP_201_CREATED)
    return _finish(request, result)


@api_view(['GET', 'POST'])
@permission_classes([IsAdmin])
def menu_delete(request, menu_id):
    """
    메뉴 항목 삭제 (하위 항목 포함)

    GET: 삭제 확인 폼
    POST: action=delete 삭제, action=cancel 취소
    """
    if request.method == 'GET':
        return Response(MenuAdminService.get_delete_form(menu_id))

    result = MenuAdminService.delete_menu(menu_id, request.data)
    return _finish(request, result)
