from datetime import date, timedelta
from itertools import product
from types import SimpleNamespace

from django.test import SimpleTestCase, override_settings

from algorithms.blood_compatibility import (
    BLOOD_TYPES,
    COMPATIBILITY,
    InvalidBloodType,
    check_compatibility,
    compatible_donors,
    compatible_recipients,
    derive_compatibility,
    get_blood_type_profile,
    is_compatible,
    parse_blood_type,
    sort_blood_types,
)
from algorithms.eligibility import can_donate, days_until_available, is_donor_eligible


ALL_TYPES = frozenset(BLOOD_TYPES)


class CompatibilityTableTests(SimpleTestCase):
    """The static table must agree with the ABO/Rh rules and be internally consistent"""

    def test_table_matches_derivation_for_all_pairs(self):
        for donor, recipient in product(BLOOD_TYPES, repeat=2):
            with self.subTest(donor=donor, recipient=recipient):
                self.assertEqual(
                    recipient in COMPATIBILITY[donor],
                    derive_compatibility(donor, recipient),
                )

    def test_donors_and_recipients_are_inverse(self):
        for x, y in product(BLOOD_TYPES, repeat=2):
            with self.subTest(x=x, y=y):
                self.assertEqual(y in compatible_donors(x), x in compatible_recipients(y))

    def test_every_type_matches_itself(self):
        for bt in BLOOD_TYPES:
            self.assertIn(bt, compatible_donors(bt))
            self.assertIn(bt, compatible_recipients(bt))

    def test_universal_donor(self):
        self.assertEqual(compatible_recipients('O-'), ALL_TYPES)
        for bt in BLOOD_TYPES:
            self.assertIn('O-', compatible_donors(bt))

    def test_universal_recipient(self):
        self.assertEqual(compatible_donors('AB+'), ALL_TYPES)
        self.assertEqual(len(compatible_donors('AB+')), 8)
        self.assertEqual(compatible_recipients('AB+'), frozenset({'AB+'}))

    def test_known_cases(self):
        self.assertEqual(compatible_donors('A+'), {'A+', 'A-', 'O+', 'O-'})
        self.assertEqual(compatible_donors('O-'), {'O-'})
        self.assertEqual(compatible_recipients('B-'), {'B+', 'B-', 'AB+', 'AB-'})

    def test_results_are_stable(self):
        self.assertIs(compatible_donors('B+'), compatible_donors('B+'))
        self.assertIsInstance(compatible_recipients('A-'), frozenset)

    def test_is_compatible(self):
        self.assertTrue(is_compatible('O-', 'AB+'))
        self.assertTrue(is_compatible('A-', 'A+'))
        self.assertFalse(is_compatible('A+', 'A-'))
        self.assertFalse(is_compatible('AB+', 'O+'))
        self.assertFalse(is_compatible('B+', 'A+'))


class ParseBloodTypeTests(SimpleTestCase):

    def test_normalizes_case_and_whitespace(self):
        self.assertEqual(parse_blood_type(' ab+ '), 'AB+')
        self.assertEqual(parse_blood_type('o-'), 'O-')

    def test_rejects_unknown_codes(self):
        for bad in ['', 'C+', 'A', 'AB', 'O+-', 'Unknown', None, 7]:
            with self.subTest(value=bad):
                with self.assertRaises(InvalidBloodType):
                    parse_blood_type(bad)

    def test_invalid_blood_type_is_value_error(self):
        with self.assertRaises(ValueError) as ctx:
            compatible_donors('Z+')
        self.assertEqual(ctx.exception.value, 'Z+')
        self.assertIn('O-', str(ctx.exception))

    def test_engine_rejects_instead_of_returning_empty(self):
        with self.assertRaises(InvalidBloodType):
            compatible_recipients('XY')
        with self.assertRaises(InvalidBloodType):
            is_compatible('O-', 'XY')
        with self.assertRaises(InvalidBloodType):
            derive_compatibility('XY', 'O-')


class ProfileAndReportTests(SimpleTestCase):

    def test_profiles(self):
        self.assertEqual(get_blood_type_profile('O-').special, 'Universal Blood Donor')
        self.assertEqual(get_blood_type_profile('AB+').special, 'Universal Plasma Donor')
        self.assertEqual(get_blood_type_profile('o+').frequency, '38%')
        self.assertIsNone(get_blood_type_profile('B-').special)

    def test_profile_for_unknown_code_raises(self):
        with self.assertRaises(InvalidBloodType):
            get_blood_type_profile('Unknown')

    def test_sort_blood_types(self):
        self.assertEqual(sort_blood_types({'O-', 'A+', 'AB-'}), ['A+', 'AB-', 'O-'])

    def test_check_compatibility(self):
        report = check_compatibility('a+')

        self.assertEqual(report['blood_type'], 'A+')
        self.assertEqual(report['compatible_donors'], ['A+', 'A-', 'O+', 'O-'])
        self.assertEqual(report['can_donate_to'], ['A+', 'AB+'])
        self.assertEqual(report['profile']['category'], 'Common')
        self.assertEqual(report['all_blood_types'], list(BLOOD_TYPES))
        self.assertEqual(len(report['matrix']), 8)

        row = {r['blood_type']: r for r in report['matrix']}
        self.assertTrue(row['O-']['can_receive_from'])
        self.assertFalse(row['O-']['can_donate_to'])
        self.assertTrue(row['AB+']['can_donate_to'])
        self.assertFalse(row['B+']['can_receive_from'])


class EligibilityTests(SimpleTestCase):
    today = date(2026, 3, 1)

    def donor(self, **kwargs):
        values = {'is_available': True, 'last_donation_date': None, 'blood_type': 'O-', 'pk': 1}
        values.update(kwargs)
        return SimpleNamespace(**values)

    def test_never_donated(self):
        self.assertEqual(days_until_available(None, self.today), 0)
        self.assertTrue(can_donate(self.donor(), self.today))

    def test_cooldown(self):
        last = self.today - timedelta(days=10)
        self.assertEqual(days_until_available(last, self.today), 20)
        self.assertFalse(can_donate(self.donor(last_donation_date=last), self.today))

        last = self.today - timedelta(days=30)
        self.assertEqual(days_until_available(last, self.today), 0)
        self.assertTrue(can_donate(self.donor(last_donation_date=last), self.today))

    @override_settings(LIFEFLOW_DONATION_COOLDOWN_DAYS=90)
    def test_cooldown_is_configurable(self):
        last = self.today - timedelta(days=30)
        self.assertEqual(days_until_available(last, self.today), 60)

    def test_is_donor_eligible(self):
        request = SimpleNamespace(blood_type='A+', pk=9)

        self.assertTrue(is_donor_eligible(self.donor(), request, self.today))
        self.assertFalse(is_donor_eligible(self.donor(is_available=False), request, self.today))
        self.assertFalse(is_donor_eligible(self.donor(blood_type='B+'), request, self.today))
        self.assertFalse(is_donor_eligible(
            self.donor(last_donation_date=self.today - timedelta(days=5)), request, self.today
        ))
