from django.db import models
from django.conf import settings
from django.db.models import Max, Min


class PressureMap(models.Model):
    """환자 1명, 하루 1일 기준의 측정 세션 (업로드 1회 = 세션 1개)."""
    patient = models.ForeignKey("users.Patient", on_delete=models.CASCADE, related_name="pressure_maps")
    day = models.DateField(db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["day", "id"]

    def time_extent(self):
        """
        (첫 프레임 시각, 마지막 프레임 시각). 프레임이 없으면 None.
        services.sessions_for_day 가 annotate 한 extent_start/extent_end 가 있으면 그 값을 쓴다.
        """
        if hasattr(self, "extent_start"):
            start, end = self.extent_start, self.extent_end
        else:
            ext = self.frames.aggregate(start=Min("timestamp"), end=Max("timestamp"))
            start, end = ext["start"], ext["end"]
        if start is None:
            return None
        return start, end

    def __str__(self):
        return f"map#{self.pk} patient={self.patient_id} day={self.day.isoformat()}"


class PressureFrame(models.Model):
    pressure_map = models.ForeignKey(PressureMap, on_delete=models.CASCADE, related_name="frames")
    timestamp = models.DateTimeField(db_index=True)
    grid = models.JSONField(default=list)   # 32x32 int, [0,255]

    # grid 에서 파생 (FrameSample 계산값)
    average_pressure = models.IntegerField(default=0)
    min_value = models.IntegerField(default=0)
    max_value = models.IntegerField(default=0)
    peak_pressure = models.IntegerField(default=0)
    contact_area_percentage = models.FloatField(default=0.0)

    class Meta:
        ordering = ["timestamp", "id"]
        indexes = [models.Index(fields=["pressure_map", "timestamp"], name="pressuremap_frame_map_ts_idx")]

    @classmethod
    def from_sample(cls, pressure_map, sample) -> "PressureFrame":
        """이미 계산된 FrameSample 지표를 그대로 사용 (재계산 없음)."""
        m = sample.metrics
        return cls(
            pressure_map=pressure_map,
            timestamp=sample.timestamp,
            grid=sample.grid,
            average_pressure=m.average,
            min_value=m.min,
            max_value=m.max,
            peak_pressure=m.peak_pressure,
            contact_area_percentage=m.contact_area_percentage,
        )

    def __str__(self):
        return f"frame#{self.pk} @ {self.timestamp.isoformat()}"


class Comment(models.Model):
    """세션에 남기는 메모. parent 가 있으면 같은 세션 댓글에 대한 답글."""
    pressure_map = models.ForeignKey(PressureMap, on_delete=models.CASCADE, related_name="comments")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="pressure_comments")
    parent = models.ForeignKey("self", null=True, blank=True, on_delete=models.CASCADE, related_name="replies")
    text = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"comment#{self.pk} map={self.pressure_map_id} by {self.user_id}"
