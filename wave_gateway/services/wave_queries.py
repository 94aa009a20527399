"""GraphQL documents sent to Wave's public API.

Operation names double as the ``operation`` label used in call logs.
"""

from __future__ import annotations


MONEY_FIELDS = """
  value
  currency {
    code
  }
"""

INVOICE_FIELDS = f"""
  id
  invoiceNumber
  status
  createdAt
  invoiceDate
  dueDate
  viewUrl
  pdfUrl
  total {{{MONEY_FIELDS}}}
  amountDue {{{MONEY_FIELDS}}}
  amountPaid {{{MONEY_FIELDS}}}
  customer {{
    id
    name
    email
  }}
"""

PRODUCT_FIELDS = """
  id
  name
  description
  unitPrice
  isSold
  isBought
  isArchived
"""

CUSTOMER_FIELDS = """
  id
  name
  email
  phone
"""

INPUT_ERROR_FIELDS = """
  inputErrors {
    message
    path
    code
  }
"""

PAGE_INFO_FIELDS = """
  pageInfo {
    currentPage
    totalPages
    totalCount
  }
"""


CREATE_INVOICE_MUTATION = f"""
mutation CreateInvoice($input: InvoiceCreateInput!) {{
  invoiceCreate(input: $input) {{
    didSucceed
    {INPUT_ERROR_FIELDS}
    invoice {{{INVOICE_FIELDS}}}
  }}
}}
"""

APPROVE_INVOICE_MUTATION = f"""
mutation InvoiceApprove($input: InvoiceApproveInput!) {{
  invoiceApprove(input: $input) {{
    didSucceed
    {INPUT_ERROR_FIELDS}
    invoice {{{INVOICE_FIELDS}}}
  }}
}}
"""

INVOICE_BY_ID_QUERY = f"""
query InvoiceById($businessId: ID!, $invoiceId: ID!) {{
  business(id: $businessId) {{
    id
    invoice(id: $invoiceId) {{{INVOICE_FIELDS}}}
  }}
}}
"""

INVOICE_BY_NUMBER_QUERY = f"""
query InvoiceByNumber($businessId: ID!, $invoiceNumber: String!) {{
  business(id: $businessId) {{
    id
    invoices(invoiceNumber: $invoiceNumber, page: 1, pageSize: 1) {{
      edges {{
        node {{{INVOICE_FIELDS}}}
      }}
    }}
  }}
}}
"""

LIST_INVOICES_QUERY = f"""
query ListInvoices($businessId: ID!, $page: Int!, $pageSize: Int!, $status: InvoiceStatus) {{
  business(id: $businessId) {{
    id
    invoices(page: $page, pageSize: $pageSize, status: $status) {{
      {PAGE_INFO_FIELDS}
      edges {{
        node {{{INVOICE_FIELDS}}}
      }}
    }}
  }}
}}
"""

MONTHLY_INVOICES_QUERY = f"""
query MonthlyInvoices(
  $businessId: ID!
  $page: Int!
  $pageSize: Int!
  $startDate: Date
  $endDate: Date
) {{
  business(id: $businessId) {{
    id
    invoices(
      page: $page
      pageSize: $pageSize
      invoiceDateStart: $startDate
      invoiceDateEnd: $endDate
    ) {{
      {PAGE_INFO_FIELDS}
      edges {{
        node {{{INVOICE_FIELDS}}}
      }}
    }}
  }}
}}
"""

MONEY_TRANSACTION_CREATE_MUTATION = f"""
mutation MoneyTransactionCreate($input: MoneyTransactionCreateInput!) {{
  moneyTransactionCreate(input: $input) {{
    didSucceed
    {INPUT_ERROR_FIELDS}
    transaction {{
      id
    }}
  }}
}}
"""

LIST_PRODUCTS_QUERY = f"""
query ListProducts($businessId: ID!, $page: Int!, $pageSize: Int!) {{
  business(id: $businessId) {{
    id
    products(page: $page, pageSize: $pageSize) {{
      {PAGE_INFO_FIELDS}
      edges {{
        node {{{PRODUCT_FIELDS}}}
      }}
    }}
  }}
}}
"""

PRODUCT_CREATE_MUTATION = f"""
mutation ProductCreate($input: ProductCreateInput!) {{
  productCreate(input: $input) {{
    didSucceed
    {INPUT_ERROR_FIELDS}
    product {{{PRODUCT_FIELDS}}}
  }}
}}
"""

PRODUCT_UPDATE_MUTATION = f"""
mutation ProductUpdate($input: ProductUpdateInput!) {{
  productUpdate(input: $input) {{
    didSucceed
    {INPUT_ERROR_FIELDS}
    product {{{PRODUCT_FIELDS}}}
  }}
}}
"""

LIST_CUSTOMERS_QUERY = f"""
query ListCustomers($businessId: ID!, $page: Int!, $pageSize: Int!) {{
  business(id: $businessId) {{
    id
    customers(page: $page, pageSize: $pageSize) {{
      {PAGE_INFO_FIELDS}
      edges {{
        node {{{CUSTOMER_FIELDS}}}
      }}
    }}
  }}
}}
"""

CUSTOMER_CREATE_MUTATION = f"""
mutation CustomerCreate($input: CustomerCreateInput!) {{
  customerCreate(input: $input) {{
    didSucceed
    {INPUT_ERROR_FIELDS}
    customer {{{CUSTOMER_FIELDS}}}
  }}
}}
"""
