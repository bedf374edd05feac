"""
Blood Type Compatibility Engine
Determines which donor blood types can donate to which recipient blood types
"""
from collections import namedtuple
from types import MappingProxyType


# Display order used everywhere a list of blood types is shown
BLOOD_TYPES = ('A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-')

BLOOD_TYPE_CHOICES = [(bt, bt) for bt in BLOOD_TYPES]

UNIVERSAL_DONOR = 'O-'
UNIVERSAL_RECIPIENT = 'AB+'


class InvalidBloodType(ValueError):
    """Raised when a value is not one of the eight ABO/Rh blood types"""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Invalid blood type: {value!r}. Expected one of {', '.join(BLOOD_TYPES)}")


def parse_blood_type(value):
    """
    Normalize and validate a blood type code

    Args:
        value: Raw input (e.g., ' ab+ ')

    Returns:
        Canonical blood type code (e.g., 'AB+')

    Raises:
        InvalidBloodType: if the value is not a known blood type
    """
    if not isinstance(value, str):
        raise InvalidBloodType(value)

    code = value.strip().upper()
    if code not in BLOOD_TYPES:
        raise InvalidBloodType(value)
    return code


def split_blood_type(blood_type):
    """Split 'AB-' into its ABO group and Rh sign: ('AB', '-')"""
    code = parse_blood_type(blood_type)
    return code[:-1], code[-1]


def derive_compatibility(donor_blood_type, recipient_blood_type) -> bool:
    """
    Red cell compatibility from first principles

    ABO rule: O gives to everyone, AB takes from everyone, otherwise groups must match.
    Rh rule: Rh- gives to both, Rh+ gives only to Rh+.
    """
    donor_abo, donor_rh = split_blood_type(donor_blood_type)
    recipient_abo, recipient_rh = split_blood_type(recipient_blood_type)

    abo_ok = donor_abo == 'O' or donor_abo == recipient_abo or recipient_abo == 'AB'
    rh_ok = donor_rh == '-' or donor_rh == recipient_rh
    return abo_ok and rh_ok


# Blood type compatibility matrix (donor -> recipients)
COMPATIBILITY = MappingProxyType({
    'O-': frozenset(['O-', 'O+', 'A-', 'A+', 'B-', 'B+', 'AB-', 'AB+']),  # Universal donor
    'O+': frozenset(['O+', 'A+', 'B+', 'AB+']),
    'A-': frozenset(['A-', 'A+', 'AB-', 'AB+']),
    'A+': frozenset(['A+', 'AB+']),
    'B-': frozenset(['B-', 'B+', 'AB-', 'AB+']),
    'B+': frozenset(['B+', 'AB+']),
    'AB-': frozenset(['AB-', 'AB+']),
    'AB+': frozenset(['AB+']),
})

# Inverse of the matrix above (recipient -> donors)
RECEIVES_FROM = MappingProxyType({
    recipient: frozenset(
        donor for donor, recipients in COMPATIBILITY.items() if recipient in recipients
    )
    for recipient in BLOOD_TYPES
})


def is_compatible(donor_blood_type, recipient_blood_type):
    """
    Check if donor blood type is compatible with recipient

    Args:
        donor_blood_type: Donor's blood type (e.g., 'O+')
        recipient_blood_type: Recipient's blood type (e.g., 'A+')

    Returns:
        Boolean: True if compatible, False otherwise
    """
    donor = parse_blood_type(donor_blood_type)
    recipient = parse_blood_type(recipient_blood_type)
    return recipient in COMPATIBILITY[donor]


def compatible_donors(recipient_blood_type):
    """
    Get the blood types that can donate to recipient

    Args:
        recipient_blood_type: Recipient's blood type

    Returns:
        frozenset of compatible donor blood types (never empty)
    """
    return RECEIVES_FROM[parse_blood_type(recipient_blood_type)]


def compatible_recipients(donor_blood_type):
    """
    Get the blood types that can receive from donor

    Args:
        donor_blood_type: Donor's blood type

    Returns:
        frozenset of compatible recipient blood types (never empty)
    """
    return COMPATIBILITY[parse_blood_type(donor_blood_type)]


def sort_blood_types(blood_types):
    return sorted(blood_types, key=BLOOD_TYPES.index)


# ---------------------------
# Blood type profiles
# ---------------------------
BloodTypeProfile = namedtuple('BloodTypeProfile', ['frequency', 'category', 'special'])

BLOOD_TYPE_PROFILES = MappingProxyType({
    'A+': BloodTypeProfile('34%', 'Common', None),
    'A-': BloodTypeProfile('6%', 'Less Common', None),
    'B+': BloodTypeProfile('9%', 'Less Common', None),
    'B-': BloodTypeProfile('2%', 'Rare', None),
    'AB+': BloodTypeProfile('3%', 'Rare', 'Universal Plasma Donor'),
    'AB-': BloodTypeProfile('1%', 'Very Rare', None),
    'O+': BloodTypeProfile('38%', 'Most Common', None),
    'O-': BloodTypeProfile('7%', 'Less Common', 'Universal Blood Donor'),
})


def get_blood_type_profile(blood_type):
    """Population frequency, rarity category and special property for a blood type"""
    return BLOOD_TYPE_PROFILES[parse_blood_type(blood_type)]


def check_compatibility(blood_type):
    """
    Full compatibility report for one blood type

    Args:
        blood_type: The blood type being analysed (as recipient and as donor)

    Returns:
        Dictionary with compatible donors, recipients, profile and a per-type matrix
    """
    code = parse_blood_type(blood_type)
    donors = compatible_donors(code)
    recipients = compatible_recipients(code)

    return {
        'blood_type': code,
        'compatible_donors': sort_blood_types(donors),
        'can_donate_to': sort_blood_types(recipients),
        'profile': get_blood_type_profile(code)._asdict(),
        'all_blood_types': list(BLOOD_TYPES),
        'matrix': [
            {
                'blood_type': other,
                'can_receive_from': other in donors,
                'can_donate_to': other in recipients,
            }
            for other in BLOOD_TYPES
        ],
    }
