from django.contrib.auth.models import AbstractUser
from django.db import models
from django.conf import settings

class User(AbstractUser):
    pass

class Clinician(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="clinician")
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"clinician:{self.user.username}"

class Patient(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="patient")
    clinician = models.ForeignKey(Clinician, null=True, blank=True, on_delete=models.SET_NULL, related_name="patients")
    date_of_birth = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"patient:{self.user.username}"

class MatDevice(models.Model):
    # 실시간으로 프레임을 push 하는 센서 매트
    device_id = models.CharField(max_length=64, unique=True, db_index=True)
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name="devices")
    nickname = models.CharField(max_length=50, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.device_id} ({self.patient.user.username})"
