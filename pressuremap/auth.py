from rest_framework.authentication import BaseAuthentication
from rest_framework import exceptions
from users.models import MatDevice

class DeviceIDHeaderAuth(BaseAuthentication):
    """요청 헤더 X-Device-Id 또는 body.device_id 로 센서 매트 인증
    사전 등록된 활성 디바이스만 허용, 해당 매트 환자의 user 를 request.user 로,
    디바이스 객체를 request.auth 로 설정
    둘 다 오면 같은 값이어야 함
    """
    def authenticate(self, request):
        header_id = request.headers.get("X-Device-Id")
        body_id = None
        if hasattr(request, "data") and hasattr(request.data, "get"):
            body_id = request.data.get("device_id")
        if header_id and body_id and str(body_id) != header_id:
            raise exceptions.AuthenticationFailed("X-Device-Id does not match body device_id")

        device_id = header_id or body_id
        if not device_id:
            return None  # 다른 인증으로 넘어감

        try:
            device = MatDevice.objects.select_related("patient__user").get(device_id=device_id, is_active=True)
        except MatDevice.DoesNotExist:
            raise exceptions.AuthenticationFailed("Unknown or inactive device")
        return (device.patient.user, device)

    def authenticate_header(self, request):
        return "X-Device-Id"
