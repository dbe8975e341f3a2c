# erp/services.py
"""
ERPNext REST client.

Every call is logged and failures are reported as an empty result (None or
[]) so callers can fall back to demo data.
"""
import json
import logging
from urllib.parse import quote

import requests
from django.conf import settings

logger = logging.getLogger(__name__)


class ErpService:
    """
    Thin wrapper over the ERPNext resource and report APIs.

    Usage:
        erp = ErpService()
        if erp.is_configured():
            invoices = erp.get_records('Sales Invoice', limit=20)
    """

    def __init__(self, base_url=None, api_key=None, api_secret=None, verify_ssl=None, timeout=None, session=None):
        self.base_url = (base_url if base_url is not None else settings.ERP_BASE_URL or '').rstrip('/')
        self.api_key = api_key if api_key is not None else settings.ERP_API_KEY
        self.api_secret = api_secret if api_secret is not None else settings.ERP_API_SECRET
        self.verify_ssl = settings.ERP_VERIFY_SSL if verify_ssl is None else verify_ssl
        self.timeout = timeout or settings.ERP_TIMEOUT
        self.session = session or requests.Session()

    def is_configured(self):
        return bool(self.base_url) and bool(self.api_key)

    def _headers(self):
        return {
            'Authorization': f"token {self.api_key}:{self.api_secret}",
            'Accept': 'application/json',
            'Content-Type': 'application/json',
        }

    def _url(self, endpoint):
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _request(self, method, endpoint, **kwargs):
        """JSON body of a successful response, or None."""
        url = self._url(endpoint)
        try:
            response = self.session.request(
                method, url,
                headers=self._headers(),
                verify=self.verify_ssl,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            logger.error("ERP %s %s failed: %s", method, url, e)
            return None

        if not response.ok:
            logger.error("ERP %s %s returned %s: %s", method, url, response.status_code, response.text[:500])
            return None
        try:
            return response.json()
        except ValueError:
            logger.error("ERP %s %s returned a non-JSON body", method, url)
            return None

    def create_generic_record(self, doctype, data):
        if not self.is_configured():
            logger.warning("ERP sync skipped: missing configuration")
            return None
        logger.info("ERP create %s", doctype)
        result = self._request('POST', f"resource/{quote(doctype)}", json={'data': data})
        if result is not None:
            logger.info("ERP record created in %s", doctype)
        return result

    def get_records(self, doctype, filters=None, limit=100):
        if not self.is_configured():
            logger.warning("ERP get_records skipped: missing configuration")
            return []
        params = {'limit_page_length': limit, 'fields': '["*"]'}
        if filters:
            params['filters'] = json.dumps(filters)
        result = self._request('GET', f"resource/{quote(doctype)}", params=params)
        records = (result or {}).get('data') or []
        logger.info("ERP %s: %s record(s) retrieved", doctype, len(records))
        return records

    def get_record(self, doctype, name):
        if not self.is_configured():
            logger.warning("ERP get_record skipped: missing configuration")
            return None
        result = self._request('GET', f"resource/{quote(doctype)}/{quote(str(name))}")
        return (result or {}).get('data')

    def get_report_data(self, report_name, filters=None):
        """`message` of frappe.desk.query_report.run: {'columns': [...], 'result': [...]}."""
        if not self.is_configured():
            logger.warning("ERP get_report_data skipped: missing configuration")
            return None
        params = {'report_name': report_name, 'filters': json.dumps(filters or {})}
        result = self._request('GET', 'method/frappe.desk.query_report.run', params=params)
        message = (result or {}).get('message')
        if message is not None:
            logger.info("ERP report %s: %s row(s)", report_name, len(message.get('result') or []))
        return message

    def get_companies(self):
        return self.get_records('Company', limit=100)


def normalize_columns(columns):
    """
    Report columns as [{fieldname, label, fieldtype}].
    Columns come either as dicts or as "fieldname:Type:width" strings.
    """
    normalized = []
    for col in columns or []:
        if isinstance(col, dict):
            fieldname = col.get('fieldname') or col.get('field_name') or ''
            normalized.append({
                'fieldname': fieldname,
                'label': col.get('label') or fieldname,
                'fieldtype': col.get('fieldtype') or 'Data',
            })
        elif isinstance(col, str):
            parts = col.split(':')
            fieldname = parts[0]
            label = fieldname.replace('_', ' ')
            normalized.append({
                'fieldname': fieldname,
                'label': label[:1].upper() + label[1:],
                'fieldtype': parts[1] if len(parts) > 1 and parts[1] else 'Data',
            })
    return normalized


def normalize_rows(result, columns):
    """Report rows as dicts. Positional rows are keyed by column; summary rows (with `indent`) are dropped."""
    rows = []
    for row in result or []:
        if isinstance(row, dict):
            if 'indent' in row:
                continue
            rows.append(row)
        elif isinstance(row, (list, tuple)):
            rows.append({
                col['fieldname']: row[i] if i < len(row) else None
                for i, col in enumerate(columns)
            })
    return rows
