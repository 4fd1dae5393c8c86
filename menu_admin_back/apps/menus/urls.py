from django.urls import path
from . import views

app_name = 'menus'

urlpatterns = [
    # 루트 메뉴 목록
    path('admin/list/', views.menu_list, name='menu-list'),

    # 루트 메뉴 트리 보기
    path('admin/view/<int:menu_id>/', views.menu_view, name='menu-view'),

    # 메뉴 항목 생성 / 수정
    path('admin/edit/', views.menu_edit, name='menu-create'),
    path('admin/edit/<int:menu_id>/', views.menu_edit, name='menu-edit'),

    # 메뉴 항목 삭제
    path('admin/delete/<int:menu_id>/', views.menu_delete, name='menu-delete'),
]
