from django.contrib import admin
from .models import Comment, PressureMap, PressureFrame

@admin.register(PressureMap)
class PressureMapAdmin(admin.ModelAdmin):
    list_display = ("id", "patient", "day", "created_at")
    list_filter = ("day",)
    search_fields = ("patient__user__username",)

@admin.register(PressureFrame)
class PressureFrameAdmin(admin.ModelAdmin):
    list_display = ("id", "pressure_map", "timestamp", "peak_pressure", "contact_area_percentage")
    list_filter = ("pressure_map__day",)
    readonly_fields = ("average_pressure", "min_value", "max_value", "peak_pressure", "contact_area_percentage")

@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ("id", "pressure_map", "user", "parent", "created_at")
    list_filter = ("pressure_map__day",)
    search_fields = ("text", "user__username")
