import io

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from openpyxl import Workbook

from dataimports.models import DataImport
from dataimports.services.reader import read_records, read_sheet
from pdftemplates.models import PdfTemplate

PEOPLE_CSV = b"name,age\nAnn,30\nBob,41\nCid,\n"


@pytest.fixture
def template():
    return PdfTemplate.objects.create(key='badge', name='Badge', data_source_type=PdfTemplate.SOURCE_CSV)


def _url(template):
    return reverse('dataimports:template-import', args=[template.pk])


def _upload(client, template, content=PEOPLE_CSV, name='people.csv'):
    return client.post(_url(template), {'file': SimpleUploadedFile(name, content, content_type='text/csv')})


# ---------------------------
# reader
# ---------------------------

def test_read_csv_keeps_values_as_strings(tmp_path):
    path = tmp_path / 'people.csv'
    path.write_bytes(b"name,zip\nAnn,00123\n\nBob,9\n")
    headers, rows = read_sheet(path)
    assert headers == ['name', 'zip']
    assert rows == [['Ann', '00123'], ['Bob', '9']]


def test_read_csv_trims_and_pads_ragged_rows():
    source = io.BytesIO(b'name,age\nAnn,30\nBob,41,extra\nCid\n')
    headers, rows = read_sheet(source, filename='people.csv')
    assert headers == ['name', 'age']
    assert rows == [['Ann', '30'], ['Bob', '41'], ['Cid', '']]


def test_read_xlsx(tmp_path):
    workbook = Workbook()
    sheet = workbook.active
    sheet.append(['name', 'age'])
    sheet.append(['Ann', 30])
    sheet.append(['Bob', None])
    path = tmp_path / 'people.xlsx'
    workbook.save(path)

    records, rows = read_records(path)
    assert rows == [['Ann', '30'], ['Bob', '']]
    assert records[0] == {'name': 'Ann', 'age': '30'}


def test_read_empty_file(tmp_path):
    path = tmp_path / 'empty.csv'
    path.write_bytes(b'')
    assert read_sheet(path) == ([], [])


def test_read_rejects_unknown_extension():
    with pytest.raises(ValueError):
        read_sheet(io.BytesIO(b'a,b'), filename='data.txt')


# ---------------------------
# views
# ---------------------------

@pytest.mark.django_db
def test_upload_csv(client, template, media_root):
    resp = _upload(client, template)
    assert resp.status_code == 200
    data = resp.json()
    assert data['success'] is True
    assert data['import']['total_rows'] == 3
    assert data['import']['columns'] == ['name', 'age']
    assert data['import']['pdf_template_id'] == template.pk
    assert data['message'] == 'File uploaded successfully. 3 records found.'
    assert (media_root / data['import']['file_path']).is_file()


@pytest.mark.django_db
def test_show_import_rows(client, template):
    _upload(client, template)
    resp = client.get(_url(template))
    assert resp.status_code == 200
    data = resp.json()
    assert data['columns'] == ['name', 'age']
    assert data['total_rows'] == 3
    assert data['data'][2] == ['Cid', '']


@pytest.mark.django_db
def test_upload_csv_with_ragged_rows(client, template):
    resp = _upload(client, template, content=b'name,age\nAnn,30\nBob,41,extra\n')
    assert resp.status_code == 200
    assert resp.json()['import']['total_rows'] == 2
    assert client.get(_url(template)).json()['data'] == [['Ann', '30'], ['Bob', '41']]


@pytest.mark.django_db
def test_show_without_import(client, template):
    resp = client.get(_url(template))
    assert resp.status_code == 200
    assert resp.json() == {'data': []}


@pytest.mark.django_db
def test_new_upload_replaces_previous(client, template, media_root):
    first = _upload(client, template).json()['import']['file_path']
    second = _upload(client, template, content=b"title\nOne\n", name='titles.csv').json()['import']
    assert DataImport.objects.filter(template=template).count() == 1
    assert second['columns'] == ['title']
    assert not (media_root / first).exists()


@pytest.mark.django_db
def test_delete_import(client, template, media_root):
    path = _upload(client, template).json()['import']['file_path']
    resp = client.delete(_url(template))
    assert resp.status_code == 200
    assert resp.json() == {'success': True}
    assert not DataImport.objects.filter(template=template).exists()
    assert not (media_root / path).exists()


@pytest.mark.django_db
def test_rejects_bad_extension(client, template):
    resp = _upload(client, template, content=b'hello', name='notes.txt')
    assert resp.status_code == 422
    assert 'file' in resp.json()['errors']


@pytest.mark.django_db
def test_rejects_large_file(client, template, settings):
    settings.DATA_IMPORT_MAX_BYTES = 10
    resp = _upload(client, template)
    assert resp.status_code == 422


@pytest.mark.django_db
def test_unknown_template(client):
    assert client.get(reverse('dataimports:template-import', args=[999])).status_code == 404
