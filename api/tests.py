from datetime import date, timedelta

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from donors.models import DonorProfile, DonorNotification, DonationHistory
from donors.utils import record_donation, restore_available_donors
from hospitals.models import Hospital, EmergencyRequest


def donor_payload(**kwargs):
    payload = {
        'full_name': 'Sneha Patil',
        'age': 27,
        'blood_type': 'ab+',
        'phone': '9876543210',
        'email': 'sneha@example.com',
        'city': 'Pune',
        'state': 'Maharashtra',
        'pincode': '411001',
        'agree_terms': True,
    }
    payload.update(kwargs)
    return payload


def make_donor(full_name, blood_type, phone, **kwargs):
    values = {'age': 30, 'email': f'{phone}@example.com', 'city': 'Pune',
              'state': 'Maharashtra', 'pincode': '411001'}
    values.update(kwargs)
    return DonorProfile.objects.create(full_name=full_name, blood_type=blood_type, phone=phone, **values)


def make_request(**kwargs):
    values = {
        'patient_name': 'Ravi Kumar',
        'blood_type': 'B+',
        'medical_condition': 'Thalassemia',
        'hospital_name': 'Hindu Rao Hospital',
        'contact_person': 'Dr. Sen',
        'contact_phone': '9833333333',
    }
    values.update(kwargs)
    return EmergencyRequest.objects.create(**values)


class StaffAPITestCase(APITestCase):

    def login_staff(self):
        staff = get_user_model().objects.create_user('coordinator', password='pw', is_staff=True)
        self.client.force_authenticate(user=staff)


class CompatibilityAPITests(APITestCase):

    def test_blood_types(self):
        response = self.client.get(reverse('api:blood-types'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['blood_type'] for row in response.data],
                         ['A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-'])
        self.assertEqual(response.data[-1]['special'], 'Universal Blood Donor')

    def test_report(self):
        response = self.client.get(reverse('api:compatibility-report', args=['ab-']))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['blood_type'], 'AB-')
        self.assertEqual(response.data['compatible_donors'], ['A-', 'B-', 'AB-', 'O-'])
        self.assertEqual(response.data['can_donate_to'], ['AB+', 'AB-'])

    def test_report_unknown_type(self):
        response = self.client.get(reverse('api:compatibility-report', args=['XY']))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Invalid blood type', response.data['error'])

    def test_pair_check(self):
        url = reverse('api:compatibility-check')

        response = self.client.get(url, {'donor': 'O-', 'recipient': 'AB+'})
        self.assertEqual(response.data, {'donor': 'O-', 'recipient': 'AB+', 'compatible': True})

        response = self.client.get(url, {'donor': 'AB+', 'recipient': 'O-'})
        self.assertFalse(response.data['compatible'])

    def test_pair_check_errors(self):
        url = reverse('api:compatibility-check')
        self.assertEqual(self.client.get(url, {'donor': 'O-'}).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.client.get(url, {'donor': 'O-', 'recipient': 'Q'}).status_code,
                         status.HTTP_400_BAD_REQUEST)


class DonorAPITests(StaffAPITestCase):

    def test_register(self):
        response = self.client.post(reverse('api:donor-list'), donor_payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['blood_type'], 'AB+')
        self.assertTrue(response.data['can_donate'])
        self.assertNotIn('agree_terms', response.data)
        self.assertTrue(DonorProfile.objects.filter(phone='9876543210').exists())

    def test_register_requires_terms(self):
        response = self.client.post(reverse('api:donor-list'), donor_payload(agree_terms=False), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('agree_terms', response.data)

    def test_register_validation(self):
        url = reverse('api:donor-list')
        cases = {
            'age': donor_payload(age=17),
            'pincode': donor_payload(pincode='4110'),
            'state': donor_payload(state='Atlantis'),
            'blood_type': donor_payload(blood_type='C+'),
        }
        for field, payload in cases.items():
            with self.subTest(field=field):
                response = self.client.post(url, payload, format='json')
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertIn(field, response.data)

    def test_register_duplicate_phone(self):
        make_donor('Existing', 'O+', '9876543210')
        response = self.client.post(reverse('api:donor-list'), donor_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('phone', response.data)

    def test_search_requires_blood_type(self):
        response = self.client.get(reverse('api:donor-list'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {"error": "Please select a blood group"})

    def test_search(self):
        make_donor('Omkar', 'O-', '9000000001', city='Mumbai')
        make_donor('Bhavna', 'B+', '9000000002')
        make_donor('Bharat', 'B+', '9000000003', is_available=False)

        response = self.client.get(reverse('api:donor-list'), {'blood_type': 'B+'})
        self.assertEqual([d['full_name'] for d in response.data], ['Bhavna'])
        self.assertNotIn('medical_conditions', response.data[0])

        response = self.client.get(reverse('api:donor-list'), {'blood_type': 'B+', 'compatible': 'true'})
        self.assertEqual({d['full_name'] for d in response.data}, {'Omkar', 'Bhavna'})

        response = self.client.get(reverse('api:donor-list'), {'blood_type': 'O-', 'city': 'mum'})
        self.assertEqual(len(response.data), 1)

    def test_search_invalid_blood_type(self):
        response = self.client.get(reverse('api:donor-list'), {'blood_type': 'Z+'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_record_donation_is_staff_only(self):
        donor = make_donor('Omkar', 'O-', '9000000001')
        url = reverse('api:donor-record-donation', args=[donor.id])

        response = self.client.post(url, {}, format='json')
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

        self.login_staff()
        hospital = Hospital.objects.create(name='KEM Hospital', address='Parel, Mumbai')
        response = self.client.post(url, {'hospital': hospital.id, 'units': 1}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_available'])
        self.assertEqual(response.data['donation_count'], 1)
        self.assertEqual(response.data['days_until_available'], 30)

        response = self.client.get(reverse('api:donor-donation-history', args=[donor.id]))
        self.assertEqual(response.data[0]['hospital_name'], 'KEM Hospital')

    def test_update_profile(self):
        donor = make_donor('Omkar', 'O-', '9000000001')
        url = reverse('api:donor-detail', args=[donor.id])

        response = self.client.patch(url, {'city': 'Nashik'}, format='json')
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

        self.login_staff()
        response = self.client.patch(url, {'city': 'Nashik', 'blood_type': ' o+ '}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['city'], 'Nashik')
        self.assertEqual(response.data['blood_type'], 'O+')
        donor.refresh_from_db()
        self.assertEqual(donor.blood_type, 'O+')

    def test_switching_off_by_hand_survives_cooldown_restore(self):
        donor = make_donor('Omkar', 'O-', '9000000001')
        record_donation(donor, today=date.today() - timedelta(days=5))
        url = reverse('api:donor-detail', args=[donor.id])
        self.login_staff()

        self.client.patch(url, {'is_available': True}, format='json')
        response = self.client.patch(url, {'is_available': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        donor.refresh_from_db()
        self.assertFalse(donor.on_cooldown)
        self.assertEqual(restore_available_donors(today=date.today() + timedelta(days=60)), 0)
        donor.refresh_from_db()
        self.assertFalse(donor.is_available)

    def test_toggle_availability(self):
        donor = make_donor('Omkar', 'O-', '9000000001')
        self.login_staff()

        response = self.client.post(reverse('api:donor-toggle-availability', args=[donor.id]))
        self.assertEqual(response.data, {'id': donor.id, 'is_available': False})


class HospitalAPITests(APITestCase):

    def setUp(self):
        Hospital.objects.create(name='Guru Nanak Eye Centre', address='Maharaja Ranjit Singh Marg')
        Hospital.objects.create(name='Hindu Rao Hospital', address='Malka Ganj', latitude=28.6667, longitude=77.2167)

    def test_autocomplete(self):
        response = self.client.get(reverse('api:hospital-list'), {'q': 'hindu'})
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['coordinates'], {'lat': 28.6667, 'lng': 77.2167})

        response = self.client.get(reverse('api:hospital-list'), {'q': 'h'})
        self.assertEqual(response.data, [])

    def test_directory(self):
        response = self.client.get(reverse('api:hospital-list'))
        self.assertEqual([h['name'] for h in response.data], ['Guru Nanak Eye Centre', 'Hindu Rao Hospital'])
        self.assertIsNone(response.data[0]['coordinates'])


class EmergencyRequestAPITests(StaffAPITestCase):

    def payload(self, **kwargs):
        data = {
            'patient_name': 'Anita Desai',
            'blood_type': 'o-',
            'units_needed': 3,
            'urgency_level': 'urgent',
            'medical_condition': 'Surgery',
            'contact_person': 'Dr. Kapoor',
            'contact_phone': '9844444444',
        }
        data.update(kwargs)
        return data

    def test_create_with_directory_hospital(self):
        hospital = Hospital.objects.create(name='Safdarjung Hospital', address='Safdarjung Enclave')
        response = self.client.post(reverse('api:emergency-request-list'),
                                    self.payload(hospital=hospital.id), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['hospital_name'], 'Safdarjung Hospital')
        self.assertEqual(response.data['hospital_address'], 'Safdarjung Enclave')
        self.assertEqual(response.data['blood_type'], 'O-')
        self.assertEqual(response.data['status'], 'open')
        self.assertEqual(response.data['urgency_label'], 'Urgent (Within 6 hours)')

    def test_create_with_typed_hospital(self):
        response = self.client.post(reverse('api:emergency-request-list'),
                                    self.payload(hospital_name='Private Nursing Home'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['hospital'])

    def test_create_needs_a_hospital(self):
        response = self.client.post(reverse('api:emergency-request-list'), self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('hospital_name', response.data)

    def test_create_rejects_too_many_units(self):
        response = self.client.post(reverse('api:emergency-request-list'),
                                    self.payload(hospital_name='X', units_needed=11), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('units_needed', response.data)

    def test_live_board(self):
        moderate = make_request(urgency_level='moderate')
        critical = make_request(urgency_level='critical')
        make_request(urgency_level='critical', status='fulfilled')

        response = self.client.get(reverse('api:emergency-request-list'))
        self.assertEqual([r['id'] for r in response.data], [critical.id, moderate.id])

        response = self.client.get(reverse('api:emergency-request-list'), {'status': 'all'})
        self.assertEqual(len(response.data), 3)

    def test_fulfil_and_cancel(self):
        request = make_request()
        url = reverse('api:emergency-request-fulfil', args=[request.id])

        response = self.client.post(url)
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

        self.login_staff()
        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'fulfilled')

        response = self.client.post(reverse('api:emergency-request-cancel', args=[request.id]))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_notifications(self):
        request = make_request()
        donor = make_donor('Omkar', 'O-', '9000000001')
        DonorNotification.objects.create(donor=donor, emergency_request=request, status='notified')

        self.login_staff()
        response = self.client.get(reverse('api:emergency-request-notifications', args=[request.id]))
        self.assertEqual(response.data[0]['donor_name'], 'Omkar')
        self.assertEqual(response.data[0]['status'], 'notified')


class DashboardStatsTests(APITestCase):

    def test_stats(self):
        first = make_donor('Asha', 'A+', '9000000001', city='Pune')
        make_donor('Bala', 'B+', '9000000002', city='pune')
        make_donor('Chetan', 'O+', '9000000003', city='Nagpur', is_available=False)
        DonationHistory.objects.create(donor=first, date_donated='2026-01-15')
        make_request()

        response = self.client.get(reverse('api:dashboard-stats'))
        self.assertEqual(response.data, {
            'total_donors': 3,
            'active_donors': 2,
            'lives_saved': 3,
            'cities_covered': 2,
            'open_requests': 1,
        })
