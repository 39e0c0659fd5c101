"""
Resource kinds managed by the dashboard and the sheets backing them
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple


@dataclass(frozen=True)
class ResourceKind:
    """Describes one record collection and how it maps onto its sheet"""
    name: str
    sheet: str
    read_action: str
    id_field: str
    id_prefix: str
    headers: Tuple[str, ...]
    add_action: Optional[str] = None
    update_action: Optional[str] = None
    delete_action: Optional[str] = None
    status_field: Optional[str] = None
    default_status: Optional[str] = None
    created_fields: Tuple[str, ...] = ()
    updated_fields: Tuple[str, ...] = ()
    numeric_fields: FrozenSet[str] = frozenset()
    integer_fields: FrozenSet[str] = frozenset()
    completion_field: Optional[str] = None
    camel_case_keys: bool = False
    label: str = ""

    @property
    def cache_key(self) -> str:
        return self.name

    @property
    def write_actions(self) -> Dict[str, str]:
        actions = {
            self.add_action: "create",
            self.update_action: "update",
            self.delete_action: "delete",
        }
        return {action: op for action, op in actions.items() if action}


TICKETS = ResourceKind(
    name="tickets",
    label="Ticket",
    sheet="Customer Service Hub",
    read_action="getTickets",
    add_action="addTicket",
    update_action="updateTicket",
    delete_action="deleteTicket",
    id_field="TicketID",
    id_prefix="TICKET-",
    headers=(
        "TicketID", "Ticket Category", "Ticket Notes", "First Name", "Last Name",
        "Email Address", "Phone Number", "Date of Transaction", "Receipt Number",
        "Purchase Amount", "Last 4 Digits of Card", "Product", "Store Name",
        "Receipt File", "Status", "Office Notes", "File 1", "File 2", "File 3",
        "File 4", "Timestamp",
    ),
    status_field="Status",
    default_status="New",
    created_fields=("Timestamp",),
)

ACCOUNTS = ResourceKind(
    name="accounts",
    label="Account",
    sheet="Accounts",
    read_action="getAccounts",
    add_action="addAccount",
    update_action="updateAccount",
    delete_action="deleteAccount",
    id_field="AccountID",
    id_prefix="acc-",
    headers=(
        "AccountID", "Account Type", "Sub Category", "Company", "Location Name",
        "Location Address", "Expiration", "Amount Due", "Billing Type",
        "Billing Amount", "Payment Method", "License Number", "Insurance Carrier",
        "Insurance Broker", "Notes", "Status", "Timestamp", "File Upload",
    ),
    status_field="Status",
    created_fields=("Timestamp",),
    updated_fields=("Timestamp",),
    numeric_fields=frozenset({"Amount Due", "Billing Amount"}),
    camel_case_keys=True,
)

TASKS = ResourceKind(
    name="tasks",
    label="Task",
    sheet="Tasks",
    read_action="getTasks",
    add_action="addTask",
    update_action="updateTask",
    delete_action="deleteTask",
    id_field="TaskID",
    id_prefix="task-",
    headers=(
        "TaskID", "Task Name", "Due Date", "Task Description", "Contact",
        "Account", "Status", "Priority", "Notes", "Completed On",
    ),
    status_field="Status",
    default_status="To Do",
    completion_field="Completed On",
)

CONTACTS = ResourceKind(
    name="contacts",
    label="Contact",
    sheet="Directory",
    read_action="getDirectory",
    add_action="addContact",
    update_action="updateContact",
    delete_action="deleteContact",
    id_field="ContactID",
    id_prefix="con-",
    headers=(
        "ContactID", "First Name", "Last Name", "Phone Number", "Email Address",
        "Address", "Company/Organization", "Job Title", "Department", "Status",
        "Notes", "Created On",
    ),
    status_field="Status",
    created_fields=("Created On",),
)

FINANCING = ResourceKind(
    name="financing",
    label="Financing record",
    sheet="FinancingLedger",
    read_action="getFinancingLedger",
    add_action="addFinancingRecord",
    update_action="updateFinancingRecord",
    delete_action="deleteFinancingRecord",
    id_field="finance_id",
    id_prefix="FIN-",
    headers=(
        "finance_id", "customer_name", "customer_email", "customer_phone",
        "product_description", "receipt_number", "sale_date", "sales_rep",
        "store_name", "total_sale_amount", "down_payment_amount", "financed_amount",
        "installment_count", "installment_amount", "payment_method",
        "payment_due_day", "total_amount_paid", "current_balance_due",
        "agreement_status", "notes_log", "agreement_file", "id_card_file_url",
        "receipt_file", "created_on", "last_updated",
    ),
    status_field="agreement_status",
    default_status="Active",
    created_fields=("created_on", "last_updated"),
    updated_fields=("last_updated",),
    numeric_fields=frozenset({
        "total_sale_amount", "down_payment_amount", "financed_amount",
        "installment_amount", "total_amount_paid", "current_balance_due",
    }),
    integer_fields=frozenset({"installment_count"}),
)

PRODUCTS_SHEET = "Products"
PRODUCTS_HEADERS = ("Items", "Colors", "Category", "Sub-Category")
PRODUCTS_CACHE_KEY = "products"

USERS_SHEET = "Users"
USERS_HEADERS = ("UserID", "Name", "Email", "Phone", "AccessCode", "Role", "Location")

RESOURCE_KINDS: Dict[str, ResourceKind] = {
    kind.name: kind for kind in (TICKETS, ACCOUNTS, TASKS, CONTACTS, FINANCING)
}

READ_ACTIONS: Dict[str, ResourceKind] = {
    kind.read_action: kind for kind in RESOURCE_KINDS.values()
}

WRITE_ACTIONS: Dict[str, Tuple[ResourceKind, str]] = {
    action: (kind, op)
    for kind in RESOURCE_KINDS.values()
    for action, op in kind.write_actions.items()
}

DEFAULT_HEADERS: Dict[str, Tuple[str, ...]] = {
    **{kind.sheet: kind.headers for kind in RESOURCE_KINDS.values()},
    PRODUCTS_SHEET: PRODUCTS_HEADERS,
    USERS_SHEET: USERS_HEADERS,
}


def get_kind(name: str) -> ResourceKind:
    try:
        return RESOURCE_KINDS[name]
    except KeyError:
        raise ValueError(f"Unknown resource kind '{name}'") from None
