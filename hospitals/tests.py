from datetime import timedelta
from io import StringIO
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest import mock

from django.contrib.admin.helpers import ACTION_CHECKBOX_NAME
from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from donors.models import DonorProfile, DonorNotification
from hospitals.models import Hospital, EmergencyRequest
from hospitals.utils import (
    DELHI_HOSPITALS,
    RequestClosed,
    close_emergency_request,
    search_hospitals,
    upsert_hospitals,
)


def make_request(blood_type='O+', **kwargs):
    values = {
        'patient_name': 'Meera Iyer',
        'medical_condition': 'Surgery',
        'hospital_name': 'Lok Nayak Hospital',
        'contact_person': 'Dr. Rao',
        'contact_phone': '9822222222',
    }
    values.update(kwargs)
    return EmergencyRequest.objects.create(blood_type=blood_type, **values)


class HospitalSearchTests(TestCase):

    def setUp(self):
        self.aiims = Hospital.objects.create(
            name='All India Institute of Medical Sciences (AIIMS)',
            address='Sri Aurobindo Marg, Ansari Nagar, New Delhi - 110029',
        )
        self.safdarjung = Hospital.objects.create(
            name='Safdarjung Hospital',
            address='Safdarjung Enclave, New Delhi - 110029',
        )
        Hospital.objects.create(name='AIIMS Annexe', address='Closed', is_active=False)

    def test_short_terms_return_nothing(self):
        self.assertEqual(list(search_hospitals('')), [])
        self.assertEqual(list(search_hospitals('a')), [])
        self.assertEqual(list(search_hospitals(' s ')), [])

    def test_matches_name_case_insensitively(self):
        self.assertEqual(list(search_hospitals('aiims')), [self.aiims])

    def test_matches_address(self):
        self.assertEqual(list(search_hospitals('110029')), [self.aiims, self.safdarjung])
        self.assertEqual(list(search_hospitals('enclave')), [self.safdarjung])


class HospitalImportTests(TestCase):

    def test_upsert_hospitals(self):
        created, updated = upsert_hospitals([
            {'name': 'City Hospital', 'address': 'MG Road'},
            {'name': '', 'address': 'skipped'},
        ])
        self.assertEqual((created, updated), (1, 0))

        created, updated = upsert_hospitals([{'name': 'City Hospital', 'address': 'Station Road'}])
        self.assertEqual((created, updated), (0, 1))
        self.assertEqual(Hospital.objects.get(name='City Hospital').address, 'Station Road')

    def test_import_builtin_list(self):
        out = StringIO()
        call_command('import_hospitals', stdout=out)
        self.assertEqual(Hospital.objects.count(), len(DELHI_HOSPITALS))
        self.assertIn(f'Created: {len(DELHI_HOSPITALS)}', out.getvalue())

        out = StringIO()
        call_command('import_hospitals', stdout=out)
        self.assertEqual(Hospital.objects.count(), len(DELHI_HOSPITALS))
        self.assertIn(f'Created: 0, Updated: {len(DELHI_HOSPITALS)}', out.getvalue())

    def test_import_csv(self):
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / 'hospitals.csv'
            path.write_text(
                "Name,Address,Phone,Latitude,Longitude\n"
                "Ruby Hall Clinic,Sassoon Road Pune,02066455100,18.5308,73.8774\n"
                "KEM Hospital,Rasta Peth Pune,,,\n"
            )
            call_command('import_hospitals', str(path), stdout=StringIO())

        ruby = Hospital.objects.get(name='Ruby Hall Clinic')
        self.assertAlmostEqual(ruby.latitude, 18.5308)
        kem = Hospital.objects.get(name='KEM Hospital')
        self.assertIsNone(kem.latitude)
        self.assertEqual(kem.phone, '')

    def test_import_blanks_bad_coordinates(self):
        out = StringIO()
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / 'hospitals.csv'
            path.write_text(
                "name,address,latitude,longitude\n"
                "Jehangir Hospital,Sassoon Road Pune,north,73.8770\n"
                "Sahyadri Hospital,Deccan Gymkhana Pune,18.5167,73.8400\n"
            )
            call_command('import_hospitals', str(path), stdout=out)

        jehangir = Hospital.objects.get(name='Jehangir Hospital')
        self.assertIsNone(jehangir.latitude)
        self.assertAlmostEqual(jehangir.longitude, 73.8770)
        self.assertTrue(Hospital.objects.filter(name='Sahyadri Hospital').exists())
        self.assertIn("Row 2: invalid latitude 'north'", out.getvalue())

    def test_import_missing_columns(self):
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / 'hospitals.csv'
            path.write_text("title\nSomething\n")
            with self.assertRaises(CommandError):
                call_command('import_hospitals', str(path), stdout=StringIO())

    def test_import_missing_file(self):
        with self.assertRaises(CommandError):
            call_command('import_hospitals', '/nonexistent/hospitals.xlsx')


class EmergencyRequestTests(TestCase):

    def test_live_board_orders_by_urgency_then_newest(self):
        moderate = make_request(urgency_level='moderate')
        old_critical = make_request(urgency_level='critical')
        urgent = make_request(urgency_level='urgent')
        new_critical = make_request(urgency_level='critical')
        EmergencyRequest.objects.filter(pk=old_critical.pk).update(
            created_at=timezone.now() - timedelta(hours=2)
        )

        board = list(EmergencyRequest.objects.by_urgency())
        self.assertEqual(board, [new_critical, old_critical, urgent, moderate])

    def test_open_filter(self):
        open_request = make_request()
        make_request(status='fulfilled')
        self.assertEqual(list(EmergencyRequest.objects.open()), [open_request])

    def test_close_request_cancels_outstanding_notifications(self):
        request = make_request()
        waiting = DonorProfile.objects.create(
            full_name='Kiran', age=40, blood_type='O-', phone='9000000011', email='k@example.com',
            city='Delhi', state='Delhi', pincode='110001',
        )
        accepted = DonorProfile.objects.create(
            full_name='Leela', age=35, blood_type='O+', phone='9000000012', email='l@example.com',
            city='Delhi', state='Delhi', pincode='110001',
        )
        DonorNotification.objects.create(donor=waiting, emergency_request=request, status='notified')
        DonorNotification.objects.create(donor=accepted, emergency_request=request, status='accepted')

        close_emergency_request(request, 'fulfilled')

        request.refresh_from_db()
        self.assertEqual(request.status, 'fulfilled')
        statuses = dict(request.donor_notifications.values_list('donor_id', 'status'))
        self.assertEqual(statuses, {waiting.id: 'cancelled', accepted.id: 'accepted'})

    def test_close_twice_raises(self):
        request = make_request()
        close_emergency_request(request, 'cancelled')
        with self.assertRaises(RequestClosed):
            close_emergency_request(request, 'fulfilled')

    def test_close_through_stale_copy_raises(self):
        request = make_request()
        first = EmergencyRequest.objects.get(pk=request.pk)
        second = EmergencyRequest.objects.get(pk=request.pk)

        close_emergency_request(first, 'fulfilled')
        with self.assertRaises(RequestClosed):
            close_emergency_request(second, 'cancelled')

        request.refresh_from_db()
        self.assertEqual(request.status, 'fulfilled')
        self.assertEqual(second.status, 'fulfilled')

    def test_close_with_bad_status(self):
        with self.assertRaises(ValueError):
            close_emergency_request(make_request(), 'open')


class BroadcastSignalTests(TestCase):

    @mock.patch('hospitals.signals.broadcast_emergency_request')
    def test_new_request_is_broadcast_after_commit(self, task):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            request = make_request()
            task.delay.assert_not_called()

        self.assertEqual(len(callbacks), 1)
        task.delay.assert_called_once_with(request.id)

    @mock.patch('hospitals.signals.broadcast_emergency_request')
    def test_updates_are_not_broadcast(self, task):
        request = make_request()
        with self.captureOnCommitCallbacks(execute=True):
            request.additional_notes = 'Patient moved to ICU'
            request.save()
        task.delay.assert_not_called()

    @mock.patch('hospitals.signals.broadcast_emergency_request')
    def test_closed_requests_are_not_broadcast(self, task):
        with self.captureOnCommitCallbacks(execute=True):
            make_request(status='cancelled')
        task.delay.assert_not_called()


class EmergencyRequestAdminTests(TestCase):

    def setUp(self):
        admin_user = get_user_model().objects.create_superuser('admin', 'admin@example.com', 'pw')
        self.client.force_login(admin_user)
        self.url = reverse('admin:hospitals_emergencyrequest_changelist')

    def run_action(self, action, requests):
        return self.client.post(self.url, {
            'action': action,
            'index': 0,
            ACTION_CHECKBOX_NAME: [r.pk for r in requests],
        })

    def test_mark_fulfilled_skips_closed_requests(self):
        open_request = make_request()
        cancelled = make_request(status='cancelled')

        response = self.run_action('mark_fulfilled', [open_request, cancelled])

        self.assertEqual(response.status_code, 302)
        open_request.refresh_from_db()
        cancelled.refresh_from_db()
        self.assertEqual(open_request.status, 'fulfilled')
        self.assertEqual(cancelled.status, 'cancelled')

    def test_mark_cancelled_cancels_notifications(self):
        request = make_request()
        donor = DonorProfile.objects.create(
            full_name='Kiran', age=40, blood_type='O-', phone='9000000011', email='k@example.com',
            city='Delhi', state='Delhi', pincode='110001',
        )
        DonorNotification.objects.create(donor=donor, emergency_request=request, status='notified')

        self.run_action('mark_cancelled', [request])

        request.refresh_from_db()
        self.assertEqual(request.status, 'cancelled')
        self.assertEqual(request.donor_notifications.get().status, 'cancelled')
