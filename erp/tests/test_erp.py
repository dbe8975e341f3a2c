import io
import json
from unittest import mock

import pytest
import requests
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase
from django.urls import reverse
from PyPDF2 import PdfReader

from erp.services import ErpService, normalize_columns, normalize_rows
from pdftemplates.models import PdfTemplate


def _response(status=200, body=None):
    response = mock.Mock()
    response.ok = status < 400
    response.status_code = status
    response.text = json.dumps(body)
    response.json.return_value = body
    return response


def _service(*responses, **kwargs):
    session = mock.Mock()
    session.request.side_effect = list(responses)
    options = {'base_url': 'https://erp.example.com/api/', 'api_key': 'key', 'api_secret': 'secret', 'timeout': 5}
    options.update(kwargs)
    return ErpService(session=session, **options), session


# ---------------------------
# client
# ---------------------------

class ErpServiceTests(SimpleTestCase):
    def test_get_records_sends_token_and_params(self):
        erp, session = _service(_response(body={'data': [{'name': 'SINV-1'}]}))
        records = erp.get_records('Sales Invoice', filters={'status': 'Paid'}, limit=20)

        self.assertEqual(records, [{'name': 'SINV-1'}])
        args, kwargs = session.request.call_args
        self.assertEqual(args, ('GET', 'https://erp.example.com/api/resource/Sales%20Invoice'))
        self.assertEqual(kwargs['headers']['Authorization'], 'token key:secret')
        self.assertEqual(kwargs['params']['limit_page_length'], 20)
        self.assertEqual(kwargs['params']['fields'], '["*"]')
        self.assertEqual(json.loads(kwargs['params']['filters']), {'status': 'Paid'})
        self.assertEqual(kwargs['timeout'], 5)

    def test_http_error_gives_empty_result(self):
        erp, _ = _service(_response(status=500, body={'exc': 'boom'}))
        self.assertEqual(erp.get_records('Customer'), [])

    def test_network_error_gives_none(self):
        erp, _ = _service(requests.ConnectionError('unreachable'))
        self.assertIsNone(erp.get_record('Customer', 'CUST-001'))

    def test_unconfigured_client_makes_no_calls(self):
        erp, session = _service(base_url='', api_key='')
        self.assertFalse(erp.is_configured())
        self.assertEqual(erp.get_records('Customer'), [])
        self.assertIsNone(erp.get_report_data('General Ledger'))
        self.assertIsNone(erp.create_generic_record('Customer', {'customer_name': 'Ann'}))
        session.request.assert_not_called()

    def test_report_data_returns_message(self):
        message = {'columns': ['account:Link:200'], 'result': [['Cash']]}
        erp, session = _service(_response(body={'message': message}))
        self.assertEqual(erp.get_report_data('General Ledger', {'company': 'Demo'}), message)
        args, kwargs = session.request.call_args
        self.assertTrue(args[1].endswith('method/frappe.desk.query_report.run'))
        self.assertEqual(kwargs['params']['report_name'], 'General Ledger')

    def test_create_posts_data(self):
        erp, session = _service(_response(body={'data': {'name': 'CUST-9'}}))
        self.assertEqual(erp.create_generic_record('Customer', {'customer_name': 'Ann'}), {'data': {'name': 'CUST-9'}})
        self.assertEqual(session.request.call_args.kwargs['json'], {'data': {'customer_name': 'Ann'}})


class NormalizeTests(SimpleTestCase):
    def test_columns_from_strings_and_dicts(self):
        columns = normalize_columns(['posting_date:Date:100', 'party', {'fieldname': 'debit', 'label': 'Debit'}])
        self.assertEqual(columns, [
            {'fieldname': 'posting_date', 'label': 'Posting date', 'fieldtype': 'Date'},
            {'fieldname': 'party', 'label': 'Party', 'fieldtype': 'Data'},
            {'fieldname': 'debit', 'label': 'Debit', 'fieldtype': 'Data'},
        ])

    def test_rows_keyed_by_column_and_summaries_dropped(self):
        columns = normalize_columns(['account', 'debit'])
        rows = normalize_rows([['Cash', 10], ['Bank'], {'account': 'Total', 'indent': 0}, {'account': 'AR'}], columns)
        self.assertEqual(rows, [
            {'account': 'Cash', 'debit': 10},
            {'account': 'Bank', 'debit': None},
            {'account': 'AR'},
        ])


# ---------------------------
# views
# ---------------------------

@pytest.fixture
def erp_settings(settings):
    settings.ERP_BASE_URL = 'https://erp.example.com/api'
    settings.ERP_API_KEY = 'key'
    settings.ERP_API_SECRET = 'secret'
    return settings


@pytest.fixture
def unconfigured(settings):
    settings.ERP_BASE_URL = ''
    settings.ERP_API_KEY = ''
    return settings


def test_status_without_credentials(client, unconfigured):
    resp = client.get(reverse('erp:status'))
    assert resp.json()['connected'] is False


def test_report_columns_in_demo_mode(client, unconfigured):
    resp = client.get(reverse('erp:report-columns'), {'report': 'General Ledger'})
    data = resp.json()
    assert data['source'] == 'demo'
    assert data['debug_error']
    assert data['columns'][1]['fieldname'] == 'account'


def test_report_data_in_demo_mode(client, unconfigured):
    data = client.get(reverse('erp:report-data'), {'report': 'Sales Register'}).json()
    assert data['source'] == 'demo'
    assert len(data['data']) == 3


def test_report_data_from_erp(client, erp_settings):
    message = {'columns': ['customer:Link', 'amount:Currency'], 'result': [['CUST-1', 12.5]]}
    with mock.patch.object(ErpService, 'get_report_data', return_value=message) as report:
        data = client.get(reverse('erp:report-data'), {'report': 'Sales Register', 'company': 'Demo'}).json()
    assert data['source'] == 'erpnext'
    assert data['data'] == [{'customer': 'CUST-1', 'amount': 12.5}]
    assert report.call_args.args == ('Sales Register', {'company': 'Demo'})


def test_companies_fall_back_to_demo(client, unconfigured):
    data = client.get(reverse('erp:companies')).json()
    assert data['source'] == 'demo'
    assert data['companies'][0]['name'] == 'Demo Company'


def test_record_not_found(client, erp_settings):
    with mock.patch.object(ErpService, 'get_record', return_value=None):
        resp = client.get(reverse('erp:record', args=['Customer', 'CUST-404']))
    assert resp.status_code == 404
    assert resp.json()['success'] is False


def test_records_rejects_bad_filters(client, erp_settings):
    resp = client.get(reverse('erp:records', args=['Customer']), {'filters': '{not json'})
    assert resp.status_code == 400


@pytest.mark.django_db
def test_save_template_from_editor(client, pdf_factory, media_root):
    fields = [{'fieldname': 'customer', 'x': 150, 'y': 300, 'width': 0, 'align': 'center', 'page': 1}]
    resp = client.post(reverse('erp:templates'), {
        'name': 'Sales Summary',
        'report': 'Sales Register',
        'fields': json.dumps(fields),
        'scale': '1.5',
        'pdf': SimpleUploadedFile('summary.pdf', pdf_factory(), content_type='application/pdf'),
    })
    assert resp.status_code == 200
    template = PdfTemplate.objects.get(key='sales_summary')
    assert template.data_source_type == PdfTemplate.SOURCE_ERP
    assert template.file_path == 'pdf_templates/sales_summary.pdf'
    assert (media_root / template.file_path).is_file()
    customer = template.fields['customer']
    assert customer['x'] == pytest.approx(150 / (1.5 * 72 / 25.4), abs=0.01)
    assert customer['align'] == 'center'

    # saving again without a PDF keeps the stored file
    client.post(reverse('erp:templates'), {'name': 'Sales Summary', 'report': 'Sales Register', 'fields': '[]'})
    template.refresh_from_db()
    assert template.file_path == 'pdf_templates/sales_summary.pdf'

    listed = client.get(reverse('erp:templates')).json()['templates']
    assert [t['key'] for t in listed] == ['sales_summary']


@pytest.mark.django_db
def test_generate_pdf_with_template(client, stored_pdf):
    template = PdfTemplate.objects.create(
        key='receipt', file_path=stored_pdf('pdf_templates/receipt.pdf'),
        fields_config={'customer_name': {'x': 30, 'y': 30}},
    )
    resp = client.post(reverse('erp:generate-pdf'), data=json.dumps({
        'templateId': template.pk, 'data': [{'customer_name': 'Jane Smith'}], 'preview': True,
    }), content_type='application/json')
    assert resp.status_code == 200
    assert resp['Content-Disposition'].startswith('inline; filename="document_')
    assert 'Jane Smith' in PdfReader(io.BytesIO(resp.content)).pages[0].extract_text()


@pytest.mark.django_db
def test_generate_pdf_without_template_uses_simple_layout(client):
    resp = client.post(reverse('erp:generate-pdf'), data=json.dumps({
        'templateId': 'missing', 'data': [{'customer_name': 'Jane Smith', 'grand_total': 1500}],
    }), content_type='application/json')
    assert resp.status_code == 200
    assert resp['Content-Disposition'].startswith('attachment; filename="report_')
    text = PdfReader(io.BytesIO(resp.content)).pages[0].extract_text()
    assert 'ERP Report Data' in text
    assert '1,500.00' in text


@pytest.mark.django_db
def test_generate_pdf_requires_data(client):
    resp = client.post(reverse('erp:generate-pdf'), data=json.dumps({'data': []}), content_type='application/json')
    assert resp.status_code == 400


@pytest.mark.django_db
def test_generate_pdfs_for_records(client, stored_pdf, erp_settings):
    PdfTemplate.objects.create(
        key='invoice', name='Invoice', file_path=stored_pdf('templates/invoice.pdf'),
        fields_config={'customer_name': {'x': 30, 'y': 30}},
    )
    records = {'SINV-1': {'customer_name': 'John Doe'}, 'SINV-3': {'customer_name': 'Acme Corp'}}
    with mock.patch.object(ErpService, 'get_record', side_effect=lambda doctype, name: records.get(name)):
        resp = client.post(reverse('erp:generate-pdfs'), data=json.dumps({
            'template_key': 'invoice', 'doctype': 'Sales Invoice', 'record_names': ['SINV-1', 'SINV-2', 'SINV-3'],
        }), content_type='application/json')

    assert resp.status_code == 200
    data = resp.json()
    assert data['session_id'].startswith('erp_bulk_invoice_')
    assert data['total_generated'] == 2
    assert data['skipped'] == [2]
    assert data['pdf_urls'][1].endswith(f"/api/bulk/{data['session_id']}/3/view")


@pytest.mark.django_db
def test_generate_pdfs_validation(client):
    resp = client.post(reverse('erp:generate-pdfs'), data=json.dumps({'doctype': 'Sales Invoice'}),
                       content_type='application/json')
    assert resp.status_code == 422
    assert set(resp.json()['errors']) == {'template_key', 'record_names'}
