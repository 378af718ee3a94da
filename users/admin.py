from django.contrib import admin
from .models import User, Clinician, Patient, MatDevice

@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("id", "username", "email", "is_staff", "date_joined")
    search_fields = ("username", "email")

@admin.register(Clinician)
class ClinicianAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "created_at")
    search_fields = ("user__username",)

@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "clinician", "date_of_birth")
    search_fields = ("user__username",)
    list_filter = ("clinician",)

@admin.register(MatDevice)
class MatDeviceAdmin(admin.ModelAdmin):
    list_display = ("device_id", "patient", "is_active", "created_at")
    search_fields = ("device_id", "patient__user__username")
    list_filter = ("is_active",)
