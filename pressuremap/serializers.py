from datetime import date

from rest_framework import serializers

# int32 상한, 24 이상은 하루 전체로 clamp
HOURS_BACK_MAX = 2**31 - 1


def validate_representable_day(value):
    # 다음날 자정을 만들 수 없는 날짜는 조회 구간이 없음
    if value >= date.max:
        raise serializers.ValidationError("day is out of the supported range")
    return value


# 조회 공통 쿼리 (from/to 는 예약어라 뷰에서 request.GET 으로 직접 읽음)
class RangeQuerySerializer(serializers.Serializer):
    day        = serializers.DateField(input_formats=["%Y-%m-%d"], validators=[validate_representable_day], help_text="yyyy-MM-dd")
    hours_back = serializers.IntegerField(required=False, allow_null=True, max_value=HOURS_BACK_MAX, help_text="하루 끝에서 N시간 전까지")
    patient_id = serializers.IntegerField(required=False, allow_null=True, help_text="임상의: 담당 환자 ID")

class DayQuerySerializer(serializers.Serializer):
    day        = serializers.DateField(input_formats=["%Y-%m-%d"], validators=[validate_representable_day])
    patient_id = serializers.IntegerField(required=False, allow_null=True)

class ReportQuerySerializer(DayQuerySerializer):
    format = serializers.ChoiceField(choices=["txt", "csv"], default="txt")

# Upload (요청)
class UploadRequestSerializer(serializers.Serializer):
    file             = serializers.FileField(help_text="<ID>_<YYYYMMDD>.csv, 32줄 = 프레임 1개")
    start_time       = serializers.CharField(required=False, allow_blank=True, help_text="HH:MM (기본 자정)")
    use_current_time = serializers.BooleanField(required=False, default=False)

# Upload (응답)
class UploadResponseSerializer(serializers.Serializer):
    ok          = serializers.BooleanField()
    id          = serializers.IntegerField()
    day         = serializers.CharField()
    frames      = serializers.IntegerField()
    start       = serializers.CharField()
    end         = serializers.CharField()

# Ingest (요청) - 디바이스가 프레임 1장 push
class IngestRequestSerializer(serializers.Serializer):
    device_id = serializers.CharField(max_length=64)
    timestamp = serializers.CharField(help_text="ISO8601 datetime (e.g. 2025-10-13T12:34:56.000Z)")
    grid      = serializers.ListField(child=serializers.ListField(child=serializers.IntegerField()), allow_empty=False)

class MetricsSerializer(serializers.Serializer):
    min                     = serializers.IntegerField()
    max                     = serializers.IntegerField()
    average                 = serializers.IntegerField()
    contact_area_percentage = serializers.FloatField()
    peak_pressure           = serializers.IntegerField()

# Ingest (응답)
class IngestResponseSerializer(serializers.Serializer):
    ok        = serializers.BooleanField()
    id        = serializers.IntegerField()
    timestamp = serializers.CharField()
    metrics   = MetricsSerializer()
    alerts    = serializers.DictField(child=serializers.CharField())

class AverageResponseSerializer(serializers.Serializer):
    ok          = serializers.BooleanField()
    day         = serializers.CharField()
    range_start = serializers.CharField()
    range_end   = serializers.CharField()
    average_map = serializers.ListField(child=serializers.ListField(child=serializers.IntegerField()))

class PointSerializer(serializers.Serializer):
    t = serializers.CharField()
    v = serializers.FloatField()

class GraphResponseSerializer(serializers.Serializer):
    ok          = serializers.BooleanField()
    day         = serializers.CharField()
    range_start = serializers.CharField()
    range_end   = serializers.CharField()
    points      = PointSerializer(many=True)

class SessionItemSerializer(serializers.Serializer):
    id     = serializers.IntegerField()
    day    = serializers.CharField()
    start  = serializers.CharField(allow_null=True)
    end    = serializers.CharField(allow_null=True)

class SessionsResponseSerializer(serializers.Serializer):
    ok    = serializers.BooleanField()
    items = SessionItemSerializer(many=True)

# Comment (요청) - 세션에 댓글/답글
class CommentRequestSerializer(serializers.Serializer):
    pressure_map = serializers.IntegerField(help_text="세션(PressureMap) ID")
    parent       = serializers.IntegerField(required=False, allow_null=True, help_text="답글일 때 부모 댓글 ID")
    text         = serializers.CharField(max_length=2000)

class CommentSerializer(serializers.Serializer):
    id           = serializers.IntegerField()
    pressure_map = serializers.IntegerField(source="pressure_map_id")
    user_id      = serializers.IntegerField()
    user_name    = serializers.CharField(source="user.username")
    parent_id    = serializers.IntegerField(allow_null=True)
    text         = serializers.CharField()
    created_at   = serializers.DateTimeField()

class CommentsResponseSerializer(serializers.Serializer):
    ok    = serializers.BooleanField()
    items = CommentSerializer(many=True)
