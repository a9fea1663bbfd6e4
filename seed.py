"""
Fallback collections written to the store the first time a key is read,
and the static warranty catalogue.
"""

from datetime import timedelta
from typing import Dict, List

from schemas import WarrantyItem, utcnow
from security import hash_password

USERS_KEY = "users"
TUTORIALS_KEY = "tutorials"
TICKETS_KEY = "tickets"
ENQUIRIES_KEY = "expressions_of_interest"
NOTIFICATIONS_KEY = "notifications"

COLLECTION_KEYS = (USERS_KEY, TUTORIALS_KEY, TICKETS_KEY, ENQUIRIES_KEY, NOTIFICATIONS_KEY)

DEMO_PASSWORD = "password"

# Tiny placeholders; real uploads arrive as data URLs from the client.
SAMPLE_PDF_URL = "data:application/pdf;base64,JVBERi0xLjEKJSVFT0YK"
SAMPLE_IMAGE_URL = (
    "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk"
    "+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)

WARRANTY_ITEMS: List[WarrantyItem] = [
    WarrantyItem(name="Inverter", total_duration_years=10),
    WarrantyItem(name="System Warranty", total_duration_years=10),
    WarrantyItem(name="Workmanship & Service", total_duration_years=10),
    WarrantyItem(name="Solar Panels", total_duration_years=12),
    WarrantyItem(
        name="Power Output",
        total_duration_years=30,
        description="Performance: 12 Years + Balance: 18 Years",
    ),
]

COMPLAINT_TYPES = (
    "System Not Working",
    "Billing Inquiry",
    "Low Production",
    "Physical Damage",
    "General Question",
    "Other",
)


def _ago(**kwargs) -> str:
    return (utcnow() - timedelta(**kwargs)).isoformat()


def demo_collections() -> Dict[str, list]:
    """Demo data: two customers, one admin, tickets, enquiries, notifications."""
    password_hash = hash_password(DEMO_PASSWORD)
    users = [
        {
            "id": "customer1",
            "role": "customer",
            "fullName": "John Doe",
            "nicNumber": "123456789V",
            "contactNumber": "+94 77 123 4567",
            "email": "john.doe@example.com",
            "passwordHash": password_hash,
            "address": "Colombo, Sri Lanka",
            "installedBy": "Archnix Solar Tech",
            "fileNumber": "FN-001",
            "system": {
                "capacity": 5.5,
                "inverterDetails": "Solis S5-GR1P5K",
                "inverterSerialNumber": "INV-SN-98765",
                "commissioningDate": "2023-05-15T00:00:00+00:00",
            },
            "documents": [
                {"id": "doc1", "name": "Signed Agreement.pdf", "url": SAMPLE_PDF_URL,
                 "uploadedAt": "2023-05-10T00:00:00+00:00"},
                {"id": "doc2", "name": "Warranty Card.pdf", "url": SAMPLE_PDF_URL,
                 "uploadedAt": "2023-05-15T00:00:00+00:00"},
            ],
        },
        {
            "id": "customer2",
            "role": "customer",
            "fullName": "Jane Smith",
            "nicNumber": "987654321V",
            "contactNumber": "+94 71 987 6543",
            "email": "jane.smith@example.com",
            "passwordHash": password_hash,
            "address": "Kandy, Sri Lanka",
            "installedBy": "Archnix Solar Tech",
            "fileNumber": "FN-002",
            "system": {
                "capacity": 8.0,
                "inverterDetails": "Huawei SUN2000",
                "inverterSerialNumber": "INV-SN-11223",
                "commissioningDate": "2022-11-20T00:00:00+00:00",
            },
            "documents": [
                {"id": "doc3", "name": "Customer Agreement.pdf", "url": SAMPLE_PDF_URL,
                 "uploadedAt": "2022-11-15T00:00:00+00:00"},
            ],
        },
        {
            "id": "admin1",
            "role": "admin",
            "fullName": "Admin User",
            "email": "admin@archnix.com",
            "passwordHash": password_hash,
            "system": {"capacity": 0, "commissioningDate": None},
            "documents": [],
        },
    ]

    tutorials = [
        {"id": "tut1", "title": "How to Read Your Solar Invoice",
         "youtubeUrl": "https://www.youtube.com/embed/dQw4w9WgXcQ", "createdAt": _ago(days=5)},
        {"id": "tut2", "title": "Basic Solar Panel Maintenance",
         "youtubeUrl": "https://www.youtube.com/embed/o-YBDTqX_ZU", "createdAt": _ago(days=2)},
        {"id": "tut3", "title": "Understanding Your Inverter Lights",
         "youtubeUrl": "https://www.youtube.com/embed/fC7oUOUEEi4", "createdAt": _ago()},
    ]

    tickets = [
        {
            "id": "ticket1",
            "customerId": "customer1",
            "customerName": "John Doe",
            "subject": "Inverter is showing a red light",
            "status": "Open",
            "createdAt": _ago(days=2),
            "complaintType": "System Not Working",
            "photoUrls": [SAMPLE_IMAGE_URL],
            "messages": [
                {"id": "msg1", "sender": "customer",
                 "text": "My inverter has a constant red light and I am not seeing any "
                         "production. Can you please advise?",
                 "timestamp": _ago(days=2)},
            ],
        },
        {
            "id": "ticket2",
            "customerId": "customer1",
            "customerName": "John Doe",
            "subject": "Question about my last bill",
            "status": "Closed",
            "createdAt": _ago(days=10),
            "complaintType": "Billing Inquiry",
            "photoUrls": [],
            "messages": [
                {"id": "msg2", "sender": "customer",
                 "text": "I had a question regarding the breakdown of charges on my last "
                         "electricity bill.",
                 "timestamp": _ago(days=10)},
                {"id": "msg3", "sender": "admin",
                 "text": "Hi John, thanks for reaching out. We have reviewed your bill and "
                         "will send you a detailed explanation via email.",
                 "timestamp": _ago(days=9)},
                {"id": "msg4", "sender": "customer", "text": "Thank you!",
                 "timestamp": _ago(days=9)},
            ],
        },
        {
            "id": "ticket3",
            "customerId": "customer2",
            "customerName": "Jane Smith",
            "subject": "Schedule annual maintenance",
            "status": "In Progress",
            "createdAt": _ago(days=5),
            "complaintType": "General Question",
            "photoUrls": [],
            "messages": [
                {"id": "msg5", "sender": "customer",
                 "text": "I'd like to schedule my annual system check-up.",
                 "timestamp": _ago(days=5)},
                {"id": "msg6", "sender": "admin",
                 "text": "Hi Jane, our scheduling team will contact you within 24 hours to "
                         "arrange a suitable time.",
                 "timestamp": _ago(days=4)},
            ],
        },
    ]

    enquiries = [
        {"id": "eoi1", "name": "Prospective Client A", "email": "client.a@example.com",
         "phone": "+94 77 555 1234", "submittedAt": _ago(days=1), "status": "pending"},
        {"id": "eoi2", "name": "Prospective Client B", "email": "client.b@example.com",
         "phone": "+94 71 555 5678", "submittedAt": _ago(days=3), "status": "pending"},
    ]

    notifications = [
        {"id": "noti1", "userId": "customer1", "message": "Welcome to your new portal!",
         "type": "general", "relatedId": None, "isRead": True, "createdAt": _ago(days=2)},
        {"id": "noti2", "userId": "customer1",
         "message": "Your warranty document has been uploaded.", "type": "document",
         "relatedId": "doc2", "isRead": False, "createdAt": _ago(days=1)},
        {"id": "noti3", "userId": "admin1", "message": "John Doe created a new ticket.",
         "type": "ticket", "relatedId": "ticket1", "isRead": True, "createdAt": _ago(hours=2)},
        {"id": "noti4", "userId": "admin1",
         "message": "A new Expression of Interest was submitted.", "type": "eoi",
         "relatedId": "eoi1", "isRead": False, "createdAt": _ago(hours=1)},
    ]

    return {
        USERS_KEY: users,
        TUTORIALS_KEY: tutorials,
        TICKETS_KEY: tickets,
        ENQUIRIES_KEY: enquiries,
        NOTIFICATIONS_KEY: notifications,
    }


def empty_collections() -> Dict[str, list]:
    return {key: [] for key in COLLECTION_KEYS}
