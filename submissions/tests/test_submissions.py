import io
import json

import pytest
from django.test import TestCase
from django.urls import reverse
from PyPDF2 import PdfReader

from pdftemplates.models import PdfTemplate
from submissions.models import Submission


class SubmissionApiTests(TestCase):
    def setUp(self):
        self.ann = Submission.objects.create(name='Ann', email='ann@example.com', age=30)

    def _json(self, method, url, payload):
        return getattr(self.client, method)(url, data=json.dumps(payload), content_type='application/json')

    def test_list(self):
        resp = self.client.get(reverse('submissions:submission-list'))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([s['name'] for s in resp.json()], ['Ann'])

    def test_create(self):
        resp = self._json('post', reverse('submissions:submission-list'),
                          {'name': 'Bob', 'email': 'bob@example.com', 'age': 41})
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()['age'], 41)
        self.assertTrue(Submission.objects.filter(email='bob@example.com').exists())

    def test_create_validates_email(self):
        resp = self._json('post', reverse('submissions:submission-list'), {'name': 'Bob', 'email': 'nope'})
        self.assertEqual(resp.status_code, 422)
        self.assertIn('email', resp.json()['errors'])

    def test_partial_update(self):
        url = reverse('submissions:submission-detail', args=[self.ann.pk])
        resp = self._json('put', url, {'age': 31})
        self.assertEqual(resp.status_code, 200)
        self.ann.refresh_from_db()
        self.assertEqual(self.ann.age, 31)
        self.assertEqual(self.ann.name, 'Ann')

    def test_delete(self):
        url = reverse('submissions:submission-detail', args=[self.ann.pk])
        self.assertEqual(self.client.delete(url).status_code, 204)
        self.assertEqual(self.client.get(url).status_code, 404)


# ---------------------------
# single record PDF
# ---------------------------

def _pdf_text(response):
    return PdfReader(io.BytesIO(response.content)).pages[0].extract_text()


@pytest.fixture
def submission(db):
    return Submission.objects.create(name='Grace Hopper', email='grace@example.com', age=85)


@pytest.fixture
def profile(stored_pdf):
    return PdfTemplate.objects.create(
        key='user_profile',
        name='User profile',
        file_path=stored_pdf('templates/profile.pdf'),
        fields_config={'name': {'x': 30, 'y': 30}, 'email': {'x': 30, 'y': 45}},
    )


@pytest.mark.django_db
def test_generate_with_default_template(client, submission, profile):
    resp = client.get(reverse('generate-submission-pdf', args=[submission.pk]))
    assert resp.status_code == 200
    assert resp['Content-Type'] == 'application/pdf'
    assert resp['Access-Control-Allow-Origin'] == '*'
    text = _pdf_text(resp)
    assert 'Grace Hopper' in text
    assert 'grace@example.com' in text


@pytest.mark.django_db
def test_generate_with_template_name_and_source_table(client, submission, profile):
    profile.source_table = 'submissions_submission'
    profile.save()
    resp = client.get(reverse('generate-submission-pdf-template', args=[submission.pk, 'User profile']))
    assert resp.status_code == 200
    assert 'Grace Hopper' in _pdf_text(resp)


@pytest.mark.django_db
def test_generate_unknown_template(client, submission):
    resp = client.get(reverse('generate-submission-pdf-template', args=[submission.pk, 'missing']))
    assert resp.status_code == 404
    assert resp['Access-Control-Allow-Origin'] == '*'


@pytest.mark.django_db
def test_generate_paths_have_no_trailing_slash(client, submission):
    assert reverse('generate-submission-pdf', args=[submission.pk]) == f'/app/generate-submission-pdf/{submission.pk}'
    resp = client.get(f'/app/generate-submission-pdf/{submission.pk}/missing')
    assert resp.status_code == 404
    assert resp['Access-Control-Allow-Origin'] == '*'
    assert resp.json()['error'] == "PDF Template 'missing' not found"


@pytest.mark.django_db
def test_generate_unknown_record(client, profile):
    resp = client.get(reverse('generate-submission-pdf', args=[404]))
    assert resp.status_code == 404


@pytest.mark.django_db
def test_generate_unknown_source_table(client, submission, profile):
    profile.source_table = 'no_such_table'
    profile.save()
    resp = client.get(reverse('generate-submission-pdf', args=[submission.pk]))
    assert resp.status_code == 404


@pytest.mark.django_db
def test_corrupt_template_falls_back_to_simple_pdf(client, submission, stored_pdf):
    PdfTemplate.objects.create(
        key='user_profile',
        file_path=stored_pdf('templates/broken.pdf', data=b'%PDF-1.4 garbage'),
        fields_config={'name': {'x': 30, 'y': 30}},
    )
    resp = client.get(reverse('generate-submission-pdf', args=[submission.pk]))
    assert resp.status_code == 200
    text = _pdf_text(resp)
    assert 'Record #' in text
    assert 'Grace Hopper' in text
    assert 'Email:' in text


@pytest.mark.django_db
def test_options_preflight(client):
    resp = client.options(reverse('generate-submission-pdf', args=[1]))
    assert resp.status_code == 204
    assert 'GET' in resp['Access-Control-Allow-Methods']
