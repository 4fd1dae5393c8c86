import time
import logging
import re
from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger('access')


# 접근 로그 기록 대상 경로 패턴 (API 경로만)
ACCESS_LOG_PATTERNS = [
    r'^/api/menus',
]

# 제외할 경로 (인증, 정적 파일 등)
ACCESS_LOG_EXCLUDE_PATTERNS = [
    r'^/api/token',
    r'^/api/schema',
    r'^/api/docs',
    r'^/static',
    r'^/media',
]

# HTTP 메서드 → action 매핑
METHOD_ACTION_MAP = {
    'GET': 'VIEW',
    'POST': 'UPDATE',
    'PUT': 'UPDATE',
    'PATCH': 'UPDATE',
    'DELETE': 'DELETE',
}


def should_log_access(path):
    """접근 로그에 기록할 경로인지 확인"""
    # 제외 패턴 체크
    for pattern in ACCESS_LOG_EXCLUDE_PATTERNS:
        if re.match(pattern, path):
            return False

    # 포함 패턴 체크
    for pattern in ACCESS_LOG_PATTERNS:
        if re.match(pattern, path):
            return True

    return False


def get_client_ip(request):
    """클라이언트 IP 추출"""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip


class AccessLogMiddleware(MiddlewareMixin):
    """메뉴 관리 API 요청과 응답을 로깅하는 미들웨어"""

    def process_request(self, request):
        request.start_time = time.time()

    def process_response(self, request, response):
        path = request.path
        if not should_log_access(path):
            return response

        # 실행 시간 계산
        duration = time.time() - getattr(request, 'start_time', time.time())

        user = getattr(request, 'user', None)
        log_data = {
            'ip': get_client_ip(request),
            'method': request.method,
            'action': METHOD_ACTION_MAP.get(request.method, 'VIEW'),
            'path': path,
            'status': response.status_code,
            'duration': f"{duration:.3f}s",
            'user': str(user) if user is not None and user.is_authenticated else 'Anonymous',
        }

        message = (
            f"{log_data['ip']} {log_data['user']} {log_data['method']} "
            f"{log_data['path']} {log_data['status']} ({log_data['duration']})"
        )

        if response.status_code >= 400:
            logger.warning(message, extra={'action': log_data['action']})
        else:
            logger.info(message, extra={'action': log_data['action']})

        return response
