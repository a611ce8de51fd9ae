"""
Slot allocation helpers

Every change to slot occupancy goes through these functions so the
is_occupied flag and the PledgeItem.slot relation never disagree.
Callers must already be inside transaction.atomic().
"""
import logging

from django.db.models import Count, Q
from django.utils import timezone

from pawnsys.core.utils import pawn_config
from .models import Box, Slot

logger = logging.getLogger('pawnsys.storage')


class StorageError(Exception):
    """Raised when a storage operation would break the occupancy rules"""


class SlotOccupiedError(StorageError):
    def __init__(self, slot):
        self.slot = slot
        super().__init__(f"Slot {slot.location_code} is already occupied")


def default_slots_per_box():
    return int(pawn_config('storage', 'slots_per_box', default=20))


def create_slots(box, start=1):
    """Create slots start..box.total_slots for a box"""
    slots = [Slot(box=box, slot_number=n) for n in range(start, box.total_slots + 1)]
    Slot.objects.bulk_create(slots)
    return len(slots)


def create_boxes(vault, count, slots_per_box=None):
    """Append `count` boxes, each with its full set of slots, to a vault"""
    slots_per_box = slots_per_box or default_slots_per_box()
    last_number = vault.boxes.order_by('-box_number').values_list('box_number', flat=True).first() or 0
    boxes = []
    for offset in range(1, count + 1):
        number = last_number + offset
        box = Box.objects.create(
            vault=vault,
            box_number=number,
            name=f"Box {number}",
            total_slots=slots_per_box,
        )
        create_slots(box)
        boxes.append(box)
    logger.info(f"Created {count} boxes with {slots_per_box} slots each in vault {vault.code}")
    return boxes


def resize_box(box, new_total):
    """
    Grow or shrink the slot count of a box. Shrinking only removes empty
    trailing slots.
    """
    if new_total == box.total_slots:
        return box
    if new_total > box.total_slots:
        start = box.total_slots + 1
        box.total_slots = new_total
        box.save(update_fields=['total_slots', 'updated_at'])
        create_slots(box, start=start)
        return box

    trailing = box.slots.filter(slot_number__gt=new_total)
    if trailing.filter(is_occupied=True).exists():
        raise StorageError(f"Cannot shrink box {box}: slots above {new_total} are occupied")
    trailing.delete()
    box.total_slots = new_total
    box.save(update_fields=['total_slots', 'updated_at'])
    return box


def available_slots(vault_id=None, box_id=None):
    queryset = Slot.objects.select_related('box__vault').filter(
        is_occupied=False,
        box__is_active=True,
        box__vault__is_active=True,
    )
    if vault_id:
        queryset = queryset.filter(box__vault_id=vault_id)
    if box_id:
        queryset = queryset.filter(box_id=box_id)
    return queryset.order_by('box__vault__code', 'box__box_number', 'slot_number')


def next_available_slot(vault_id=None, box_id=None):
    return available_slots(vault_id=vault_id, box_id=box_id).first()


def occupy_slot(item, slot):
    """
    Put a pledge item into a slot, releasing whatever slot it held before.

    Raises SlotOccupiedError when another item already holds the slot.
    """
    slot = Slot.objects.select_for_update().select_related('box__vault').get(pk=slot.pk)
    if slot.is_occupied and getattr(item, 'slot_id', None) != slot.pk:
        raise SlotOccupiedError(slot)

    previous_slot_id = item.slot_id
    if previous_slot_id and previous_slot_id != slot.pk:
        Slot.objects.filter(pk=previous_slot_id).update(is_occupied=False, occupied_at=None)

    slot.is_occupied = True
    slot.occupied_at = timezone.now()
    slot.save(update_fields=['is_occupied', 'occupied_at'])

    item.slot = slot
    item.save(update_fields=['slot', 'updated_at'])
    logger.debug(f"Item {item.barcode} placed in {slot.location_code}")
    return slot


def release_slot(item):
    """Take an item out of its slot, if it has one. Returns the released slot."""
    if not item.slot_id:
        return None
    slot = Slot.objects.select_for_update().get(pk=item.slot_id)
    slot.is_occupied = False
    slot.occupied_at = None
    slot.save(update_fields=['is_occupied', 'occupied_at'])
    item.slot = None
    item.save(update_fields=['slot', 'updated_at'])
    logger.debug(f"Item {item.barcode} released from slot {slot.pk}")
    return slot


def box_occupancy(queryset):
    """Annotate a Box queryset with occupied/available slot counts"""
    return queryset.annotate(
        occupied_count=Count('slots', filter=Q(slots__is_occupied=True)),
        available_count=Count('slots', filter=Q(slots__is_occupied=False)),
    )
