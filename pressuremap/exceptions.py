class PressureMapError(Exception):
    """pressuremap 엔진/서비스 공통 예외."""


class InvalidGrid(PressureMapError, ValueError):
    """32x32 가 아닌 grid (호출자 전제조건 위반)."""


class InvalidRange(PressureMapError, ValueError):
    """day / hours_back 등 조회 범위 파라미터 오류."""


class InvalidUpload(PressureMapError, ValueError):
    """업로드 파일명/내용 오류."""


class InvalidComment(PressureMapError, ValueError):
    """빈 댓글, 다른 세션의 댓글에 답글."""


class StorageError(PressureMapError):
    """세션/프레임 저장 실패. 이미 삭제된 겹치는 세션은 복구되지 않음."""
