"""
메뉴 관리 오류 분류

    kind               HTTP  code     발생 상황
    ValidationError    400   ERR_101  폼 입력/옵션 행 검증 실패, 알 수 없는 폼 액션
    AccessDenied       403   ERR_002  루트가 아닌 메뉴의 트리 보기
    NotFound           404   ERR_201  존재하지 않는 메뉴 항목 id
    InvalidArgument    422   ERR_401  루트가 아닌 항목으로 트리 조회
    PersistenceError   500   ERR_601  메뉴 트리 저장/삭제 중 DB 오류 (트랜잭션 롤백, 재시도 없음)
"""
from datetime import datetime, timezone

from rest_framework import status
from rest_framework.exceptions import APIException


def utc_timestamp():
    """오류 응답용 UTC ISO-8601 시각 ('...Z')"""
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


class MenuAdminException(APIException):
    """메뉴 관리 오류 기본 클래스. 응답 본문은 {'error': {...}} 하나로 통일"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = 'ERR_500'
    default_detail = 'The menu administration request failed.'
    kind = 'Error'

    def __init__(self, code=None, message=None, detail=None, field=None, status_code=None):
        self.message = message or self.default_detail
        super().__init__(detail=self.message)
        self.code = code or self.default_code
        self.detail_info = detail
        self.field = field
        if status_code:
            self.status_code = status_code

    def get_full_details(self):
        error = {
            'code': self.code,
            'kind': self.kind,
            'message': self.message,
            'timestamp': utc_timestamp(),
        }
        if self.detail_info:
            error['detail'] = self.detail_info
        if self.field:
            error['field'] = self.field
        return {'error': error}


class ValidationException(MenuAdminException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'ERR_101'
    default_detail = 'The menu form contains invalid values.'
    kind = 'ValidationError'


class PermissionDeniedException(MenuAdminException):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = 'ERR_002'
    default_detail = 'Only root menu items can be opened in the tree view.'
    kind = 'AccessDenied'


class ResourceNotFoundException(MenuAdminException):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = 'ERR_201'
    default_detail = 'Menu item not found.'
    kind = 'NotFound'


class BusinessLogicException(MenuAdminException):
    """트리 조회처럼 루트 항목이 필요한 연산에 다른 항목이 들어온 경우"""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_code = 'ERR_401'
    default_detail = 'This operation needs a root menu item.'
    kind = 'InvalidArgument'


class PersistenceException(MenuAdminException):
    """DB 오류로 메뉴 트리 변경이 롤백된 경우"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = 'ERR_601'
    default_detail = 'The menu tree could not be saved. No changes were applied.'
    kind = 'PersistenceError'
