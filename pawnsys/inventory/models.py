from django.conf import settings
from django.db import models


class ItemLocationHistory(models.Model):
    """Every move of a pledge item into, between or out of storage slots"""
    item = models.ForeignKey('pledges.PledgeItem', on_delete=models.CASCADE, related_name='location_history')
    from_slot = models.ForeignKey('storage.Slot', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    to_slot = models.ForeignKey('storage.Slot', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    from_location = models.CharField(max_length=100, blank=True)
    to_location = models.CharField(max_length=100, blank=True)
    reason = models.CharField(max_length=255, blank=True)
    moved_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='item_moves')
    moved_at = models.DateTimeField(auto_now_add=True)

    def save(self, *args, **kwargs):
        # Keep a readable copy of the location in case the slot is later removed
        if self.from_slot_id and not self.from_location:
            self.from_location = self.from_slot.location_code
        if self.to_slot_id and not self.to_location:
            self.to_location = self.to_slot.location_code
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.item_id}: {self.from_location or '-'} -> {self.to_location or '-'}"

    class Meta:
        db_table = 'item_location_history'
        ordering = ['-moved_at', '-id']
        verbose_name_plural = 'item location history'
