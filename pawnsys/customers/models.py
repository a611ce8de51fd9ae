from django.conf import settings
from django.db import models
from django.db.models import Sum
from decimal import Decimal

from .ic import format_ic, age_on


class Customer(models.Model):
    """Pawn customers, identified by IC / passport number"""
    IC_TYPE_CHOICES = [
        ('mykad', 'MyKad'),
        ('passport', 'Passport'),
        ('other', 'Other'),
    ]
    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
    ]

    customer_no = models.CharField(max_length=30, unique=True)
    name = models.CharField(max_length=200)
    ic_number = models.CharField(max_length=30, unique=True, help_text="Stored without dashes")
    ic_type = models.CharField(max_length=20, choices=IC_TYPE_CHOICES, default='mykad')
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    nationality = models.CharField(max_length=100, default='Malaysian')
    occupation = models.CharField(max_length=150, blank=True)

    phone = models.CharField(max_length=20)
    country_code = models.CharField(max_length=5, default='+60')
    whatsapp = models.CharField(max_length=20, blank=True)
    phone_alt = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)

    address_line1 = models.CharField(max_length=255, blank=True)
    address_line2 = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    postcode = models.CharField(max_length=10, blank=True)

    ic_front_photo = models.CharField(max_length=500, blank=True)
    ic_back_photo = models.CharField(max_length=500, blank=True)
    selfie_photo = models.CharField(max_length=500, blank=True)

    total_pledges = models.PositiveIntegerField(default=0)
    active_pledges = models.PositiveIntegerField(default=0)
    total_loan_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    is_blacklisted = models.BooleanField(default=False)
    blacklist_reason = models.TextField(blank=True)
    notes = models.TextField(blank=True)

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='customers_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.formatted_ic})"

    @property
    def formatted_ic(self):
        if self.ic_type == 'mykad':
            return format_ic(self.ic_number)
        return self.ic_number

    @property
    def age(self):
        return age_on(self.date_of_birth)

    @property
    def is_active(self):
        """A customer is active while they hold an outstanding (active or overdue) pledge"""
        if self.is_blacklisted:
            return False
        return self.active_pledges > 0

    def update_stats(self, save=True):
        """Recompute cached pledge counters from the pledges table"""
        pledges = self.pledges.all()
        outstanding = pledges.filter(status__in=['active', 'overdue'])
        self.total_pledges = pledges.count()
        self.active_pledges = outstanding.count()
        self.total_loan_amount = outstanding.aggregate(total=Sum('loan_amount'))['total'] or Decimal('0.00')
        if save:
            self.save(update_fields=['total_pledges', 'active_pledges', 'total_loan_amount', 'updated_at'])
        return self

    class Meta:
        db_table = 'customers'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['name'], name='customers_name_idx'),
            models.Index(fields=['phone'], name='customers_phone_idx'),
        ]
