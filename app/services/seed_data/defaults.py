"""
Baseline reference data every new tenant is provisioned with.

Accounts are listed parents-first so a parent's id is always known by the
time its children are written.
"""

# ============ CHART OF ACCOUNTS ============
# (code, name, root_type, account_type, is_group, parent_code)
DEFAULT_CHART_OF_ACCOUNTS = [
    # Assets
    ("Assets", "Assets", "Asset", "Asset", True, None),
    ("Current Assets", "Current Assets", "Asset", "Asset", True, "Assets"),
    ("Cash", "Cash", "Asset", "Cash", False, "Current Assets"),
    ("Bank", "Bank Account", "Asset", "Bank", False, "Current Assets"),
    ("Accounts Receivable", "Accounts Receivable", "Asset", "Receivable", False, "Current Assets"),
    ("Stock In Hand", "Stock In Hand", "Asset", "Stock", False, "Current Assets"),
    ("Stock Received But Not Billed", "Stock Received But Not Billed", "Asset",
     "Stock Received But Not Billed", False, "Current Assets"),
    ("Fixed Assets", "Fixed Assets", "Asset", "Asset", True, "Assets"),
    ("Furniture and Equipment", "Furniture and Equipment", "Asset", "Fixed Asset", False, "Fixed Assets"),
    ("Accumulated Depreciation", "Accumulated Depreciation", "Asset", "Accumulated Depreciation", False,
     "Fixed Assets"),

    # Liabilities
    ("Liabilities", "Liabilities", "Liability", "Liability", True, None),
    ("Current Liabilities", "Current Liabilities", "Liability", "Liability", True, "Liabilities"),
    ("Accounts Payable", "Accounts Payable", "Liability", "Payable", False, "Current Liabilities"),
    ("Sales Tax Payable", "Sales Tax Payable", "Liability", "Tax", False, "Current Liabilities"),
    ("Payroll Liabilities", "Payroll Liabilities", "Liability", "Payable", False, "Current Liabilities"),
    ("Long Term Liabilities", "Long Term Liabilities", "Liability", "Liability", True, "Liabilities"),
    ("Loans Payable", "Loans Payable", "Liability", "Payable", False, "Long Term Liabilities"),

    # Equity
    ("Equity", "Equity", "Equity", "Equity", True, None),
    ("Capital Stock", "Capital Stock", "Equity", "Equity", False, "Equity"),
    ("Retained Earnings", "Retained Earnings", "Equity", "Equity", False, "Equity"),
    ("Opening Balance Equity", "Opening Balance Equity", "Equity", "Equity", False, "Equity"),

    # Income
    ("Income", "Income", "Income", "Income Account", True, None),
    ("Sales", "Sales", "Income", "Income Account", False, "Income"),
    ("Service Revenue", "Service Revenue", "Income", "Income Account", False, "Income"),
    ("Sales Returns", "Sales Returns", "Income", "Income Account", False, "Income"),
    ("Sales Discounts", "Sales Discounts", "Income", "Income Account", False, "Income"),
    ("Other Income", "Other Income", "Income", "Income Account", False, "Income"),

    # Expenses
    ("Expenses", "Expenses", "Expense", "Expense Account", True, None),
    ("Cost of Goods Sold", "Cost of Goods Sold", "Expense", "Cost of Goods Sold", False, "Expenses"),
    ("Stock Adjustment", "Stock Adjustment", "Expense", "Stock Adjustment", False, "Expenses"),
    ("Operating Expenses", "Operating Expenses", "Expense", "Expense Account", True, "Expenses"),
    ("Salaries and Wages", "Salaries and Wages", "Expense", "Expense Account", False, "Operating Expenses"),
    ("Rent Expense", "Rent Expense", "Expense", "Expense Account", False, "Operating Expenses"),
    ("Utilities", "Utilities", "Expense", "Expense Account", False, "Operating Expenses"),
    ("Office Supplies", "Office Supplies", "Expense", "Expense Account", False, "Operating Expenses"),
    ("Marketing and Advertising", "Marketing and Advertising", "Expense", "Expense Account", False,
     "Operating Expenses"),
    ("Professional Services", "Professional Services", "Expense", "Expense Account", False, "Operating Expenses"),
    ("Insurance", "Insurance", "Expense", "Expense Account", False, "Operating Expenses"),
    ("Bank Charges", "Bank Charges", "Expense", "Expense Account", False, "Operating Expenses"),
    ("Depreciation", "Depreciation", "Expense", "Depreciation", False, "Operating Expenses"),
    ("Miscellaneous Expenses", "Miscellaneous Expenses", "Expense", "Expense Account", False, "Operating Expenses"),
    ("Shipping and Delivery", "Shipping and Delivery", "Expense", "Expense Account", False, "Expenses"),
    ("Purchase Returns", "Purchase Returns", "Expense", "Expense Account", False, "Expenses"),
    ("Purchase Discounts", "Purchase Discounts", "Expense", "Expense Account", False, "Expenses"),
    ("Write Off", "Write Off", "Expense", "Expense Account", False, "Expenses"),
    ("Exchange Gain/Loss", "Exchange Gain/Loss", "Expense", "Expense Account", False, "Expenses"),
    ("Round Off", "Round Off", "Expense", "Round Off", False, "Expenses"),
]

# ============ WAREHOUSE ============
DEFAULT_WAREHOUSE = {"code": "MAIN", "name": "Main Warehouse"}

# (code, name, path, parent_code, is_pickable, is_putaway, is_staging)
DEFAULT_LOCATIONS = [
    ("ROOT", "Main Storage", "MAIN", None, True, True, False),
    ("RECEIVING", "Receiving Area", "MAIN/RECEIVING", "ROOT", False, True, True),
    ("STAGING", "Shipping Staging", "MAIN/STAGING", "ROOT", True, False, True),
    ("QC", "Quality Control", "MAIN/QC", "ROOT", False, True, False),
    ("RETURNS", "Returns Processing", "MAIN/RETURNS", "ROOT", False, True, False),
    ("ZONE-A", "Zone A", "MAIN/ZONE-A", "ROOT", True, True, False),
    ("ZONE-B", "Zone B", "MAIN/ZONE-B", "ROOT", True, True, False),
    ("ZONE-C", "Zone C", "MAIN/ZONE-C", "ROOT", True, True, False),
]

DEFAULT_RECEIVING_LOCATION = "RECEIVING"
DEFAULT_PICKING_LOCATION = "ROOT"

# ============ UNITS OF MEASURE ============
DEFAULT_UOMS = [
    # Count
    ("Nos", "Numbers"),
    ("Pcs", "Pieces"),
    ("Unit", "Unit"),
    ("Pair", "Pair"),
    ("Set", "Set"),
    ("Dozen", "Dozen"),
    # Weight
    ("g", "Gram"),
    ("Kg", "Kilogram"),
    ("mg", "Milligram"),
    ("Ton", "Metric Ton"),
    ("oz", "Ounce"),
    ("lb", "Pound"),
    # Volume
    ("mL", "Milliliter"),
    ("L", "Liter"),
    ("cL", "Centiliter"),
    ("fl oz", "Fluid Ounce"),
    ("gal", "Gallon"),
    ("qt", "Quart"),
    ("pt", "Pint"),
    # Length
    ("mm", "Millimeter"),
    ("cm", "Centimeter"),
    ("m", "Meter"),
    ("km", "Kilometer"),
    ("in", "Inch"),
    ("ft", "Foot"),
    ("yd", "Yard"),
    # Area
    ("sqm", "Square Meter"),
    ("sqft", "Square Foot"),
    # Packaging
    ("Box", "Box"),
    ("Case", "Case"),
    ("Carton", "Carton"),
    ("Pack", "Pack"),
    ("Bundle", "Bundle"),
    ("Roll", "Roll"),
    ("Bag", "Bag"),
    ("Bottle", "Bottle"),
    ("Can", "Can"),
    ("Jar", "Jar"),
    ("Tray", "Tray"),
    ("Pallet", "Pallet"),
    # Time, for services
    ("Hour", "Hour"),
    ("Day", "Day"),
    ("Week", "Week"),
    ("Month", "Month"),
]

# ============ DOCUMENT TYPES ============
# Permission presets; unset flags fall back to the DocPerm column defaults
_MASTER_ADMIN = dict(read=True, write=True, create=True, delete=True, report=True)
_MASTER_USER = dict(read=True, write=True, create=True, delete=False, report=True)
_READ_ONLY_USER = dict(read=True, write=False, create=False, delete=False, report=True)
_SUBMIT_ADMIN = dict(read=True, write=True, create=True, delete=True, submit=True, cancel=True, report=True)
_SUBMIT_USER = dict(read=True, write=True, create=True, delete=False, submit=True, cancel=False, report=True)
_AMEND_ADMIN = dict(_SUBMIT_ADMIN, amend=True)
_AMEND_USER = dict(_SUBMIT_USER, amend=True)

DEFAULT_DOC_TYPES = [
    # Stock
    {"name": "Item", "module": "Stock",
     "description": "Products, goods, or services that can be bought or sold",
     "permissions": {"admin": _MASTER_ADMIN, "user": _MASTER_USER}},
    {"name": "Warehouse", "module": "Stock",
     "description": "Physical locations where inventory is stored",
     "permissions": {"admin": _MASTER_ADMIN, "user": _READ_ONLY_USER}},
    {"name": "Stock Entry", "module": "Stock",
     "description": "Material Receipt, Material Issue, Material Transfer",
     "permissions": {"admin": _SUBMIT_ADMIN, "user": _SUBMIT_USER}},
    {"name": "Stock Reconciliation", "module": "Stock",
     "description": "Adjust inventory quantities based on physical count",
     "permissions": {"admin": _SUBMIT_ADMIN, "user": dict(_SUBMIT_USER, submit=False)}},
    {"name": "Batch", "module": "Stock",
     "description": "Batch/Lot tracking for inventory items",
     "permissions": {"admin": _MASTER_ADMIN, "user": _MASTER_USER}},
    {"name": "Serial No", "module": "Stock",
     "description": "Serial number tracking for inventory items",
     "permissions": {"admin": _MASTER_ADMIN, "user": _MASTER_USER}},

    # Selling
    {"name": "Customer", "module": "Selling",
     "description": "Customer master data",
     "permissions": {"admin": _MASTER_ADMIN, "user": _MASTER_USER}},
    {"name": "Quotation", "module": "Selling",
     "description": "Sales quotation or estimate",
     "permissions": {"admin": _AMEND_ADMIN, "user": _AMEND_USER}},
    {"name": "Sales Order", "module": "Selling",
     "description": "Customer sales order",
     "permissions": {"admin": _AMEND_ADMIN, "user": _AMEND_USER}},
    {"name": "Delivery Note", "module": "Selling",
     "description": "Record of goods shipped to customer",
     "permissions": {"admin": _SUBMIT_ADMIN, "user": _SUBMIT_USER}},

    # Buying
    {"name": "Supplier", "module": "Buying",
     "description": "Supplier/Vendor master data",
     "permissions": {"admin": _MASTER_ADMIN, "user": _MASTER_USER}},
    {"name": "Purchase Order", "module": "Buying",
     "description": "Order placed with supplier",
     "permissions": {"admin": _AMEND_ADMIN, "user": _AMEND_USER}},
    {"name": "Purchase Receipt", "module": "Buying",
     "description": "Record of goods received from supplier",
     "permissions": {"admin": _SUBMIT_ADMIN, "user": _SUBMIT_USER}},

    # Accounts
    {"name": "Account", "module": "Accounts",
     "description": "Chart of Accounts entry",
     "permissions": {"admin": _MASTER_ADMIN, "user": _READ_ONLY_USER}},
    {"name": "Sales Invoice", "module": "Accounts",
     "description": "Invoice issued to customer",
     "permissions": {"admin": _AMEND_ADMIN, "user": _AMEND_USER}},
    {"name": "Purchase Invoice", "module": "Accounts",
     "description": "Invoice received from supplier",
     "permissions": {"admin": _AMEND_ADMIN, "user": _AMEND_USER}},
    {"name": "Payment Entry", "module": "Accounts",
     "description": "Payment received or made",
     "permissions": {"admin": _SUBMIT_ADMIN, "user": _SUBMIT_USER}},
    {"name": "Journal Entry", "module": "Accounts",
     "description": "Manual accounting entry",
     "permissions": {"admin": _SUBMIT_ADMIN, "user": dict(_READ_ONLY_USER, submit=False, cancel=False)}},

    # Setup
    {"name": "UOM", "module": "Setup",
     "description": "Unit of Measure",
     "permissions": {"admin": _MASTER_ADMIN, "user": _READ_ONLY_USER}},
    {"name": "Currency", "module": "Setup",
     "description": "Currency definition",
     "permissions": {"admin": _MASTER_ADMIN, "user": _READ_ONLY_USER}},
    {"name": "Tax Template", "module": "Setup",
     "description": "Tax rate and account configuration",
     "permissions": {"admin": _MASTER_ADMIN, "user": _READ_ONLY_USER}},

    # Core
    {"name": "User", "module": "Core",
     "description": "System user",
     "permissions": {"admin": _MASTER_ADMIN, "user": dict(_READ_ONLY_USER, report=False)}},
    {"name": "Tenant", "module": "Core", "is_single": True,
     "description": "Tenant/Company settings",
     "permissions": {
         "admin": dict(read=True, write=True, create=False, delete=False, report=True),
         "user": dict(read=True, write=False, create=False, delete=False, report=False),
     }},
]
