from django.urls import path
from .views import (
    vault_list_create, vault_detail,
    box_list_create, box_detail, box_slots, box_summary,
    available_slots, next_available_slot, storage_summary,
)

urlpatterns = [
    path('storage/vaults/', vault_list_create, name='vault-list-create'),
    path('storage/vaults/<int:pk>/', vault_detail, name='vault-detail'),
    path('storage/boxes/', box_list_create, name='box-list-create'),
    path('storage/boxes/<int:pk>/', box_detail, name='box-detail'),
    path('storage/boxes/<int:pk>/slots/', box_slots, name='box-slots'),
    path('storage/boxes/<int:pk>/summary/', box_summary, name='box-summary'),
    path('storage/slots/available/', available_slots, name='available-slots'),
    path('storage/slots/next-available/', next_available_slot, name='next-available-slot'),
    path('storage/summary/', storage_summary, name='storage-summary'),
]
