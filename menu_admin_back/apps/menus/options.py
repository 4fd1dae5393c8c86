"""
메뉴 항목 옵션(key/value) 편집 유틸리티

옵션 키는 고정된 목록에서만 선택할 수 있으며, 라벨의 접미사로 값의 형태를 구분한다.
    (접미사 없음)  scalar      문자열 그대로 저장 (bool 등 다른 타입은 허용하지 않음)
    *              structured  JSON 객체/배열 문자열을 파싱해 저장
    +              boolean     TRUTHY_VALUES 기준으로 bool 변환
"""
import json

from rest_framework import serializers
from rest_framework.exceptions import ErrorDetail

STRUCTURED_SUFFIX = '*'
BOOLEAN_SUFFIX = '+'

# 편집 화면 라벨 → 저장 키
OPTION_KEY_CHOICES = {
    'route': 'route',
    'routeParameters*': 'routeParameters',
    'uri': 'uri',
    'label': 'label',
    'attributes*': 'attributes',
    'linkAttributes*': 'linkAttributes',
    'childrenAttributes*': 'childrenAttributes',
    'labelAttributes*': 'labelAttributes',
    'extras*': 'extras',
    'current': 'current',
    'display+': 'display',
    'displayChildren+': 'displayChildren',
}

STRUCTURED_KEYS = frozenset(
    key for label, key in OPTION_KEY_CHOICES.items() if label.endswith(STRUCTURED_SUFFIX)
)
BOOLEAN_KEYS = frozenset(
    key for label, key in OPTION_KEY_CHOICES.items() if label.endswith(BOOLEAN_SUFFIX)
)
RECOGNIZED_KEYS = frozenset(OPTION_KEY_CHOICES.values())

# 대소문자 무시, 앞뒤 공백 제거 후 비교. 그 외 값은 모두 False
TRUTHY_VALUES = frozenset({'1', 'true', 'yes', 'on'})


def coerce_boolean(value):
    """
    boolean 옵션 값 변환

    Args:
        value: 입력 값 (문자열, bool, None)

    Returns:
        bool: '1', 'true', 'yes', 'on' 이면 True, 그 외 False
    """
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY_VALUES


def normalize_key(key):
    """라벨('display+')로 들어온 키를 저장 키('display')로 변환"""
    key = (key or '').strip()
    return OPTION_KEY_CHOICES.get(key, key)


class OptionsEditor:
    """
    옵션 매핑 <-> 편집용 key/value 행 목록 변환 및 검증

    사용 예:
        editor = OptionsEditor()
        rows = editor.explode(item.options)
        item.options = editor.collapse(request_rows)
    """

    @staticmethod
    def key_choices():
        """편집 화면용 키 선택지"""
        return [{'label': label, 'key': key} for label, key in OPTION_KEY_CHOICES.items()]

    @staticmethod
    def explode(options):
        """저장된 옵션 매핑을 순서가 유지되는 편집 행 목록으로 펼친다"""
        rows = []
        for key, value in (options or {}).items():
            if key in STRUCTURED_KEYS and not isinstance(value, str):
                value = json.dumps(value, ensure_ascii=False)
            elif isinstance(value, bool):
                value = 'true' if value else 'false'
            elif value is None:
                value = ''
            else:
                value = str(value)
            rows.append({'key': key, 'value': value})
        return rows

    def collapse(self, rows):
        """
        편집 행 목록을 옵션 매핑으로 합친다

        Args:
            rows: [{'key': ..., 'value': ...}, ...]

        Returns:
            dict: 저장용 옵션 매핑

        Raises:
            serializers.ValidationError: {행 번호: [오류 메시지]} 형태
        """
        options = {}
        errors = {}
        seen = set()

        for index, row in enumerate(rows or []):
            raw_key = row.get('key') or ''
            raw_value = row.get('value')
            if raw_value is None:
                raw_value = ''

            # 키/값 모두 비어있는 행은 무시
            if not raw_key.strip() and not str(raw_value).strip():
                continue

            key = normalize_key(raw_key)
            if key not in RECOGNIZED_KEYS:
                errors[index] = [ErrorDetail(f'unrecognized key "{raw_key}"', code='unrecognized_key')]
                continue
            if key in seen:
                errors[index] = [ErrorDetail(f'duplicate key "{key}"', code='duplicate_key')]
                continue
            seen.add(key)

            try:
                options[key] = self._convert_value(key, raw_value)
            except ValueError:
                errors[index] = [ErrorDetail(f'malformed structured value for "{key}"', code='malformed_value')]

        if errors:
            raise serializers.ValidationError(errors)
        return options

    @staticmethod
    def _convert_value(key, value):
        if key in BOOLEAN_KEYS:
            return coerce_boolean(value)
        if key in STRUCTURED_KEYS:
            if isinstance(value, (dict, list)):
                return value
            parsed = json.loads(value)  # JSONDecodeError 는 ValueError
            if not isinstance(parsed, (dict, list)):
                raise ValueError('structured option must be an object or an array')
            return parsed
        return value if isinstance(value, str) else str(value)

    @staticmethod
    def validate_mapping(options):
        """
        이미 매핑 형태인 옵션 검증 (import 등)

        Raises:
            serializers.ValidationError: {키: [오류 메시지]} 형태
        """
        if not isinstance(options, dict):
            raise serializers.ValidationError('options must be a mapping')

        errors = {}
        for key, value in options.items():
            if key not in RECOGNIZED_KEYS:
                errors[key] = [f'unrecognized key "{key}"']
            elif key in STRUCTURED_KEYS and not isinstance(value, (dict, list)):
                errors[key] = [f'malformed structured value for "{key}"']
            elif key in BOOLEAN_KEYS and not isinstance(value, bool):
                errors[key] = [f'"{key}" must be a boolean']
            elif key not in STRUCTURED_KEYS and key not in BOOLEAN_KEYS and not isinstance(value, str):
                errors[key] = [f'"{key}" must be a string']

        if errors:
            raise serializers.ValidationError(errors)
        return options
