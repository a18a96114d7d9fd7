"""Tells what to show in the Django admin interface for trips app"""

from django.contrib import admin
from .models import Trip, TripDecline, Review, Message


@admin.register(Trip)
class TripAdmin(admin.ModelAdmin):
    list_display = ['id', 'client', 'partner', 'vehicle', 'status', 'is_scheduled', 'departure_at', 'created_at']
    list_filter = ['status', 'is_scheduled', 'created_at']
    search_fields = ['client__username', 'partner__username', 'pickup_address', 'dropoff_address']
    readonly_fields = ['created_at', 'updated_at', 'accepted_at', 'completed_at', 'cancelled_at', 'reminders_sent']
    date_hierarchy = 'created_at'


@admin.register(TripDecline)
class TripDeclineAdmin(admin.ModelAdmin):
    list_display = ("trip", "partner", "created_at")
    search_fields = ("trip__id", "partner__username")


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("trip", "reviewer", "reviewee", "rating", "created_at")
    list_filter = ("rating",)


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ("trip", "sender", "read", "created_at")
    list_filter = ("read",)
