# erp/demo.py
# Data served when ERPNext is not configured or unreachable.

DOCTYPES = [
    'Sales Invoice',
    'Sales Order',
    'Customer',
    'Quotation',
    'Delivery Note',
    'Purchase Invoice',
    'Purchase Order',
    'Item',
]

REPORTS = [
    {'name': 'Sales Payment Summary'},
    {'name': 'General Ledger'},
    {'name': 'Accounts Receivable'},
    {'name': 'Sales Register'},
    {'name': 'Sales Invoice Trends'},
    {'name': 'Purchase Analytics'},
    {'name': 'Stock Ledger'},
    {'name': 'Item-wise Sales Register'},
    {'name': 'Accounts Payable'},
    {'name': 'Customer Ledger Summary'},
]


def _col(fieldname, label, fieldtype):
    return {'fieldname': fieldname, 'label': label, 'fieldtype': fieldtype}


REPORT_COLUMNS = {
    'Sales Payment Summary': [
        _col('posting_date', 'Posting Date', 'Date'),
        _col('customer', 'Customer', 'Link'),
        _col('customer_name', 'Customer Name', 'Data'),
        _col('mode_of_payment', 'Mode of Payment', 'Link'),
        _col('paid_amount', 'Paid Amount', 'Currency'),
        _col('outstanding_amount', 'Outstanding Amount', 'Currency'),
    ],
    'General Ledger': [
        _col('posting_date', 'Posting Date', 'Date'),
        _col('account', 'Account', 'Link'),
        _col('debit', 'Debit', 'Currency'),
        _col('credit', 'Credit', 'Currency'),
        _col('balance', 'Balance', 'Currency'),
        _col('voucher_type', 'Voucher Type', 'Data'),
        _col('voucher_no', 'Voucher No', 'Link'),
        _col('party', 'Party', 'Link'),
    ],
    'Accounts Receivable': [
        _col('posting_date', 'Posting Date', 'Date'),
        _col('customer', 'Customer', 'Link'),
        _col('customer_name', 'Customer Name', 'Data'),
        _col('voucher_type', 'Voucher Type', 'Data'),
        _col('voucher_no', 'Voucher No', 'Link'),
        _col('invoiced_amount', 'Invoiced Amount', 'Currency'),
        _col('paid_amount', 'Paid Amount', 'Currency'),
        _col('outstanding_amount', 'Outstanding Amount', 'Currency'),
        _col('age', 'Age (Days)', 'Int'),
    ],
    'Sales Register': [
        _col('posting_date', 'Posting Date', 'Date'),
        _col('customer', 'Customer', 'Link'),
        _col('customer_name', 'Customer Name', 'Data'),
        _col('item_code', 'Item Code', 'Link'),
        _col('item_name', 'Item Name', 'Data'),
        _col('qty', 'Quantity', 'Float'),
        _col('rate', 'Rate', 'Currency'),
        _col('amount', 'Amount', 'Currency'),
    ],
}

DEFAULT_COLUMNS = [
    _col('name', 'ID', 'Data'),
    _col('posting_date', 'Date', 'Date'),
    _col('grand_total', 'Grand Total', 'Currency'),
    _col('status', 'Status', 'Data'),
]

ROWS = [
    {
        'posting_date': '2026-01-15', 'customer': 'CUST-001', 'customer_name': 'John Doe',
        'mode_of_payment': 'Cash', 'paid_amount': 15000.00, 'outstanding_amount': 0,
        'voucher_type': 'Sales Invoice', 'voucher_no': 'SINV-00001',
        'item_code': 'ITEM-001', 'item_name': 'Product A', 'qty': 10, 'rate': 1500, 'amount': 15000,
        'grand_total': 15000, 'status': 'Paid',
    },
    {
        'posting_date': '2026-01-18', 'customer': 'CUST-002', 'customer_name': 'Jane Smith',
        'mode_of_payment': 'Bank Transfer', 'paid_amount': 22500.50, 'outstanding_amount': 5000,
        'voucher_type': 'Sales Invoice', 'voucher_no': 'SINV-00002',
        'item_code': 'ITEM-002', 'item_name': 'Product B', 'qty': 5, 'rate': 4500.10, 'amount': 22500.50,
        'grand_total': 22500.50, 'status': 'Partially Paid',
    },
    {
        'posting_date': '2026-01-20', 'customer': 'CUST-003', 'customer_name': 'Acme Corp',
        'mode_of_payment': 'Credit', 'paid_amount': 0, 'outstanding_amount': 75000,
        'voucher_type': 'Sales Invoice', 'voucher_no': 'SINV-00003',
        'item_code': 'ITEM-003', 'item_name': 'Product C', 'qty': 50, 'rate': 1500, 'amount': 75000,
        'grand_total': 75000, 'status': 'Unpaid',
    },
]

COMPANIES = [
    {'name': 'Demo Company', 'company_name': 'Demo Company Ltd.'},
    {'name': 'Test Corp', 'company_name': 'Test Corporation Inc.'},
]


def report_columns(report_name):
    return [dict(c) for c in REPORT_COLUMNS.get(report_name, DEFAULT_COLUMNS)]
