from django.db import models


class Vault(models.Model):
    """Top level of the storage hierarchy (safe / strong room)"""
    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.code})"

    class Meta:
        db_table = 'vaults'
        ordering = ['code']


class Box(models.Model):
    """A numbered box inside a vault"""
    vault = models.ForeignKey(Vault, on_delete=models.CASCADE, related_name='boxes')
    box_number = models.PositiveIntegerField()
    name = models.CharField(max_length=100, blank=True)
    total_slots = models.PositiveIntegerField(default=20)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.vault.code} / Box {self.box_number}"

    class Meta:
        db_table = 'boxes'
        ordering = ['vault', 'box_number']
        unique_together = [['vault', 'box_number']]


class Slot(models.Model):
    """
    A single position in a box.

    A slot holds at most one pledge item: PledgeItem.slot is a one-to-one
    relation, and is_occupied mirrors it for cheap availability queries.
    """
    box = models.ForeignKey(Box, on_delete=models.CASCADE, related_name='slots')
    slot_number = models.PositiveIntegerField()
    is_occupied = models.BooleanField(default=False)
    occupied_at = models.DateTimeField(null=True, blank=True)

    def __str__(self):
        return self.location_code

    @property
    def location_code(self):
        return f"{self.box.vault.code}-B{self.box.box_number}-S{self.slot_number}"

    @property
    def location_string(self):
        return f"{self.box.vault.name} / Box {self.box.box_number} / Slot {self.slot_number}"

    class Meta:
        db_table = 'slots'
        ordering = ['box', 'slot_number']
        unique_together = [['box', 'slot_number']]
        indexes = [
            models.Index(fields=['is_occupied'], name='slots_is_occupied_idx'),
        ]
