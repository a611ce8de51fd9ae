"""
Malaysian identity card (MyKad) helpers

A MyKad number is 12 digits, YYMMDD-PB-###G:
    YYMMDD  date of birth
    PB      place-of-birth code (state, or country for foreign births)
    ###G    serial, where the last digit's parity gives the gender
"""
from datetime import date
from typing import Optional

# Place-of-birth code -> state. Codes 21-59 are the secondary codes issued
# after the primary 01-16 range.
STATE_CODES = {
    '01': 'Johor', '21': 'Johor', '22': 'Johor', '23': 'Johor', '24': 'Johor',
    '02': 'Kedah', '25': 'Kedah', '26': 'Kedah', '27': 'Kedah',
    '03': 'Kelantan', '28': 'Kelantan', '29': 'Kelantan',
    '04': 'Melaka', '30': 'Melaka',
    '05': 'Negeri Sembilan', '31': 'Negeri Sembilan', '59': 'Negeri Sembilan',
    '06': 'Pahang', '32': 'Pahang', '33': 'Pahang',
    '07': 'Pulau Pinang', '34': 'Pulau Pinang', '35': 'Pulau Pinang',
    '08': 'Perak', '36': 'Perak', '37': 'Perak', '38': 'Perak', '39': 'Perak',
    '09': 'Perlis', '40': 'Perlis',
    '10': 'Selangor', '41': 'Selangor', '42': 'Selangor', '43': 'Selangor', '44': 'Selangor',
    '11': 'Terengganu', '45': 'Terengganu', '46': 'Terengganu',
    '12': 'Sabah', '47': 'Sabah', '48': 'Sabah', '49': 'Sabah',
    '13': 'Sarawak', '50': 'Sarawak', '51': 'Sarawak', '52': 'Sarawak', '53': 'Sarawak',
    '14': 'Kuala Lumpur', '54': 'Kuala Lumpur', '55': 'Kuala Lumpur', '56': 'Kuala Lumpur', '57': 'Kuala Lumpur',
    '15': 'Labuan', '58': 'Labuan',
    '16': 'Putrajaya',
}

# State -> (capital city, first postcode of the capital)
STATE_DEFAULTS = {
    'Johor': ('Johor Bahru', '80000'),
    'Kedah': ('Alor Setar', '05000'),
    'Kelantan': ('Kota Bharu', '15000'),
    'Melaka': ('Melaka City', '75000'),
    'Negeri Sembilan': ('Seremban', '70000'),
    'Pahang': ('Kuantan', '25000'),
    'Pulau Pinang': ('George Town', '10000'),
    'Perak': ('Ipoh', '30000'),
    'Perlis': ('Kangar', '01000'),
    'Selangor': ('Shah Alam', '40000'),
    'Terengganu': ('Kuala Terengganu', '20000'),
    'Sabah': ('Kota Kinabalu', '88000'),
    'Sarawak': ('Kuching', '93000'),
    'Kuala Lumpur': ('Kuala Lumpur', '50000'),
    'Labuan': ('Labuan', '87000'),
    'Putrajaya': ('Putrajaya', '62000'),
}

# Two-digit years up to this value belong to the 2000s
CENTURY_PIVOT = 30


def clean_ic(value: Optional[str]) -> str:
    """Strip dashes and whitespace from an IC number"""
    if not value:
        return ''
    return ''.join(str(value).replace('-', '').split())


def is_valid_mykad(value: Optional[str]) -> bool:
    ic = clean_ic(value)
    return len(ic) == 12 and ic.isdigit()


def format_ic(value: Optional[str]) -> str:
    """Format an IC number as YYMMDD-PB-###G, leaving partial input partially formatted"""
    ic = clean_ic(value)
    if len(ic) > 8:
        return f"{ic[:6]}-{ic[6:8]}-{ic[8:12]}"
    if len(ic) > 6:
        return f"{ic[:6]}-{ic[6:]}"
    return ic


def birth_date_from_ic(value: Optional[str]) -> Optional[date]:
    ic = clean_ic(value)
    if len(ic) < 6 or not ic[:6].isdigit():
        return None
    yy, mm, dd = int(ic[0:2]), int(ic[2:4]), int(ic[4:6])
    year = 2000 + yy if yy <= CENTURY_PIVOT else 1900 + yy
    try:
        return date(year, mm, dd)
    except ValueError:
        return None


def state_from_ic(value: Optional[str]) -> Optional[str]:
    ic = clean_ic(value)
    if len(ic) < 8:
        return None
    return STATE_CODES.get(ic[6:8])


def gender_from_ic(value: Optional[str]) -> Optional[str]:
    ic = clean_ic(value)
    if len(ic) != 12 or not ic[-1].isdigit():
        return None
    return 'female' if int(ic[-1]) % 2 == 0 else 'male'


def age_on(birth_date: Optional[date], today: Optional[date] = None) -> Optional[int]:
    if birth_date is None:
        return None
    today = today or date.today()
    return today.year - birth_date.year - ((today.month, today.day) < (birth_date.month, birth_date.day))


def parse_mykad(value: Optional[str], today: Optional[date] = None) -> dict:
    """
    Extract everything a MyKad number tells us about its holder.

    Returns a dict with ic_number (digits only), formatted, date_of_birth,
    age, gender, state, city and postcode. Fields that cannot be derived
    are None.
    """
    ic = clean_ic(value)
    birth_date = birth_date_from_ic(ic)
    state = state_from_ic(ic)
    city, postcode = STATE_DEFAULTS.get(state, (None, None))
    return {
        'ic_number': ic,
        'formatted': format_ic(ic),
        'is_valid': is_valid_mykad(ic),
        'date_of_birth': birth_date,
        'age': age_on(birth_date, today),
        'gender': gender_from_ic(ic),
        'state': state,
        'city': city,
        'postcode': postcode,
    }
