from datetime import date, timedelta
from io import StringIO
from pathlib import Path
from tempfile import TemporaryDirectory
from types import SimpleNamespace
from unittest import mock

from celery.schedules import crontab
from django.contrib import admin
from django.contrib.admin.helpers import ACTION_CHECKBOX_NAME
from django.contrib.auth import get_user_model
from django.core import mail
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from algorithms.blood_compatibility import InvalidBloodType
from donors.admin import DonorProfileAdmin
from donors.models import DonorProfile, DonorNotification, DonationHistory
from donors.tasks import broadcast_emergency_request, restore_donor_availability
from donors.utils import (
    match_donors,
    notify_donors,
    record_donation,
    restore_available_donors,
    search_donors,
    toggle_availability,
)
from hospitals.models import Hospital, EmergencyRequest
from lifeflow.celery import app as celery_app


def make_donor(full_name, blood_type, phone, **kwargs):
    values = {
        'age': 30,
        'email': f"{phone}@example.com",
        'city': 'Mumbai',
        'state': 'Maharashtra',
        'pincode': '400001',
    }
    values.update(kwargs)
    return DonorProfile.objects.create(full_name=full_name, blood_type=blood_type, phone=phone, **values)


def make_request(blood_type='A+', **kwargs):
    values = {
        'patient_name': 'Ravi Kumar',
        'units_needed': 2,
        'medical_condition': 'Accident',
        'hospital_name': 'Safdarjung Hospital',
        'contact_person': 'Dr. Mehta',
        'contact_phone': '9811111111',
    }
    values.update(kwargs)
    return EmergencyRequest.objects.create(blood_type=blood_type, **values)


class SearchDonorsTests(TestCase):

    def setUp(self):
        self.a_pos = make_donor('Asha', 'A+', '9000000001')
        self.o_neg = make_donor('Omar', 'O-', '9000000002', city='Navi Mumbai')
        self.b_pos = make_donor('Bina', 'B+', '9000000003', city='Delhi', state='Delhi')
        self.away = make_donor('Arun', 'A+', '9000000004', is_available=False)

    def test_exact_blood_type(self):
        self.assertEqual(list(search_donors('A+')), [self.a_pos])

    def test_compatible_search_widens_blood_types(self):
        results = set(search_donors('a+', compatible=True))
        self.assertEqual(results, {self.a_pos, self.o_neg})

    def test_city_is_case_insensitive_substring(self):
        results = list(search_donors('O-', city='mumbai'))
        self.assertEqual(results, [self.o_neg])

    def test_state_filter(self):
        self.assertEqual(list(search_donors('B+', state='Delhi')), [self.b_pos])
        self.assertEqual(list(search_donors('B+', state='Gujarat')), [])

    def test_newest_first(self):
        DonorProfile.objects.filter(pk=self.a_pos.pk).update(created_at=timezone.now() - timedelta(days=1))
        newer = make_donor('Anya', 'A+', '9000000005')
        self.assertEqual(list(search_donors('A+')), [newer, self.a_pos])

    def test_invalid_blood_type(self):
        with self.assertRaises(InvalidBloodType):
            search_donors('Q+')


class DonationCooldownTests(TestCase):

    def setUp(self):
        self.donor = make_donor('Asha', 'A+', '9000000001')
        self.hospital = Hospital.objects.create(name='AIIMS', address='Ansari Nagar, New Delhi')

    def test_record_donation(self):
        today = date(2026, 5, 10)
        record_donation(self.donor, hospital=self.hospital, units=2, notes='Walk-in', today=today)

        self.donor.refresh_from_db()
        self.assertEqual(self.donor.last_donation_date, today)
        self.assertEqual(self.donor.donation_count, 1)
        self.assertFalse(self.donor.is_available)
        self.assertTrue(self.donor.on_cooldown)

        history = DonationHistory.objects.get(donor=self.donor)
        self.assertEqual(history.hospital, self.hospital)
        self.assertEqual(history.units_donated, 2)

    def test_restore_after_cooldown(self):
        today = date(2026, 5, 10)
        record_donation(self.donor, today=today)

        self.assertEqual(restore_available_donors(today=today + timedelta(days=29)), 0)
        self.assertEqual(restore_available_donors(today=today + timedelta(days=30)), 1)

        self.donor.refresh_from_db()
        self.assertTrue(self.donor.is_available)
        self.assertFalse(self.donor.on_cooldown)

    def test_restore_leaves_opted_out_donors_alone(self):
        long_ago = date.today() - timedelta(days=200)
        record_donation(self.donor, today=long_ago)
        toggle_availability(self.donor)  # back on
        toggle_availability(self.donor)  # and off again by choice

        self.assertEqual(restore_available_donors(), 0)
        self.donor.refresh_from_db()
        self.assertFalse(self.donor.is_available)

    def test_restore_task(self):
        record_donation(self.donor, today=date.today() - timedelta(days=45))
        self.assertEqual(restore_donor_availability(), "1 donors available again")

    def test_restore_task_runs_nightly(self):
        entry = celery_app.conf.beat_schedule['restore-donor-availability']
        self.assertEqual(entry['task'], restore_donor_availability.name)
        self.assertEqual(entry['schedule'], crontab(hour=0, minute=30))

    def test_toggle_availability(self):
        toggle_availability(self.donor)
        self.donor.refresh_from_db()
        self.assertFalse(self.donor.is_available)

        toggle_availability(self.donor)
        self.donor.refresh_from_db()
        self.assertTrue(self.donor.is_available)

    def test_model_properties(self):
        self.assertTrue(self.donor.can_donate)
        self.assertEqual(self.donor.days_until_available, 0)

        record_donation(self.donor)
        self.assertFalse(self.donor.can_donate)
        self.assertEqual(self.donor.days_until_available, 30)


class EmergencyBroadcastTests(TestCase):

    def setUp(self):
        self.match = make_donor('Omar', 'O-', '9000000001', city='Delhi', state='Delhi',
                                available_for_emergency=True)
        self.other_city = make_donor('Anil', 'A+', '9000000002', available_for_emergency=True)
        self.not_opted_in = make_donor('Asha', 'A+', '9000000003', city='Delhi', state='Delhi')
        self.incompatible = make_donor('Bina', 'B+', '9000000004', city='Delhi', state='Delhi',
                                       available_for_emergency=True)
        self.cooling_down = make_donor('Arjun', 'A-', '9000000005', city='delhi', state='Delhi',
                                       available_for_emergency=True,
                                       last_donation_date=date.today() - timedelta(days=3))
        Hospital.objects.create(name='AIIMS', address='Ansari Nagar, New Delhi')
        Hospital.objects.create(name='Closed Clinic', address='Somewhere', is_active=False)

    def test_match_donors(self):
        request = make_request('A+', city='Delhi')
        self.assertEqual(list(match_donors(request)), [self.match])

    def test_match_donors_without_city(self):
        request = make_request('A+')
        self.assertEqual(set(match_donors(request)), {self.match, self.other_city})

    def test_broadcast(self):
        request = make_request('A+', city='Delhi')

        result = broadcast_emergency_request(request.id)

        self.assertEqual(result, f"Notified 1 donors for request {request.id}")
        request.refresh_from_db()
        self.assertEqual(request.donors_notified, 1)
        self.assertEqual(request.hospitals_notified, 1)
        self.assertIsNotNone(request.broadcast_at)

        notification = DonorNotification.objects.get(emergency_request=request)
        self.assertEqual(notification.donor, self.match)
        self.assertEqual(notification.status, 'notified')

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, [self.match.email])
        self.assertIn('A+', mail.outbox[0].subject)

    def test_broadcast_twice_does_not_duplicate(self):
        request = make_request('A+', city='Delhi')
        broadcast_emergency_request(request.id)
        broadcast_emergency_request(request.id)

        self.assertEqual(DonorNotification.objects.filter(emergency_request=request).count(), 1)
        self.assertEqual(len(mail.outbox), 1)

    def test_broadcast_missing_request(self):
        with self.assertLogs('donors.tasks', 'WARNING'):
            result = broadcast_emergency_request(999999)
        self.assertEqual(result, "Emergency request 999999 not found")

    def test_broadcast_skips_closed_request(self):
        request = make_request('A+', city='Delhi', status='cancelled')
        broadcast_emergency_request(request.id)
        self.assertFalse(DonorNotification.objects.exists())

    def test_broadcast_with_no_donors_warns(self):
        request = make_request('AB-', city='Pune')
        with self.assertLogs('donors.tasks', 'WARNING') as logs:
            broadcast_emergency_request(request.id)
        self.assertIn('No eligible donors', logs.output[0])

    def test_notify_survives_email_failure(self):
        request = make_request('A+', city='Delhi')
        with mock.patch('donors.utils.send_mail', side_effect=ConnectionError('smtp down')):
            with self.assertLogs('donors.utils', 'ERROR'):
                notified = notify_donors(request, [self.match])

        self.assertEqual(notified, 1)
        self.assertTrue(DonorNotification.objects.filter(donor=self.match).exists())

    def test_donor_without_email_is_still_notified(self):
        self.match.email = ''
        self.match.save()
        request = make_request('A+', city='Delhi')

        self.assertEqual(notify_donors(request, [self.match]), 1)
        self.assertEqual(len(mail.outbox), 0)


class ImportDonorsCommandTests(TestCase):

    def write_csv(self, directory, text):
        path = Path(directory) / 'donors.csv'
        path.write_text(text)
        return str(path)

    def test_import_csv(self):
        csv = (
            "full_name,age,blood_type,phone,email,city,state,pincode,available_for_emergency\n"
            "Priya Shah,28,b-,9876500001,priya@example.com,Pune,Maharashtra,411001,yes\n"
            "Too Young,16,A+,9876500002,young@example.com,Pune,Maharashtra,411001,no\n"
            "Bad Type,30,C+,9876500003,bad@example.com,Pune,Maharashtra,411001,no\n"
        )
        out = StringIO()
        with TemporaryDirectory() as tmp:
            call_command('import_donors', self.write_csv(tmp, csv), stdout=out)

        donor = DonorProfile.objects.get(phone='9876500001')
        self.assertEqual(donor.blood_type, 'B-')
        self.assertTrue(donor.available_for_emergency)
        self.assertEqual(DonorProfile.objects.count(), 1)
        self.assertIn('Created: 1, Updated: 0, Skipped: 2', out.getvalue())

    def test_import_updates_by_phone(self):
        make_donor('Priya', 'O+', '9876500001')
        csv = (
            "full_name,age,blood_group,phone_number,email,city,state,pincode\n"
            "Priya Shah,29,O+,9876500001,priya@example.com,Pune,Maharashtra,411001\n"
        )
        out = StringIO()
        with TemporaryDirectory() as tmp:
            call_command('import_donors', self.write_csv(tmp, csv), stdout=out)

        donor = DonorProfile.objects.get(phone='9876500001')
        self.assertEqual(donor.full_name, 'Priya Shah')
        self.assertEqual(donor.city, 'Pune')
        self.assertIn('Updated: 1', out.getvalue())

    def test_missing_file(self):
        with self.assertRaises(CommandError):
            call_command('import_donors', '/nonexistent/donors.xlsx')


class DonorProfileAdminTests(TestCase):

    def setUp(self):
        admin_user = get_user_model().objects.create_superuser('admin', 'admin@example.com', 'pw')
        self.client.force_login(admin_user)
        self.url = reverse('admin:donors_donorprofile_changelist')

    def run_action(self, action, donors):
        return self.client.post(self.url, {
            'action': action,
            'index': 0,
            ACTION_CHECKBOX_NAME: [d.pk for d in donors],
        })

    def test_record_donation_today(self):
        donor = make_donor('Asha', 'A+', '9000000001')

        response = self.run_action('record_donation_today', [donor])

        self.assertEqual(response.status_code, 302)
        donor.refresh_from_db()
        self.assertEqual(donor.donation_count, 1)
        self.assertEqual(donor.last_donation_date, date.today())
        self.assertFalse(donor.is_available)

    def test_restore_availability_only_touches_selection(self):
        selected = make_donor('Asha', 'A+', '9000000001')
        other = make_donor('Ravi', 'A+', '9000000002')
        for donor in (selected, other):
            record_donation(donor, today=date.today() - timedelta(days=45))

        self.run_action('restore_availability', [selected])

        selected.refresh_from_db()
        other.refresh_from_db()
        self.assertTrue(selected.is_available)
        self.assertFalse(other.is_available)
        self.assertTrue(other.on_cooldown)

    def test_editing_availability_clears_cooldown(self):
        donor = make_donor('Asha', 'A+', '9000000001')
        record_donation(donor, today=date.today() - timedelta(days=5))
        donor.refresh_from_db()

        donor.is_available = False
        form = SimpleNamespace(changed_data=['is_available'])
        DonorProfileAdmin(DonorProfile, admin.site).save_model(None, donor, form, True)

        donor.refresh_from_db()
        self.assertFalse(donor.on_cooldown)
        self.assertEqual(restore_available_donors(today=date.today() + timedelta(days=60)), 0)
        donor.refresh_from_db()
        self.assertFalse(donor.is_available)
