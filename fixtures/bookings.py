"""Appointment fixtures."""

# Rows shaped like the clinic's appointments table
APPOINTMENTS = [
    {
        "id": "apt-001",
        "doctor_id": "doc-001",
        "appointment_date": "2025-09-15",
        "appointment_time": "09:00:00",
        "status": "confirmed",
    },
    {
        "id": "apt-002",
        "doctor_id": "doc-001",
        "appointment_date": "2025-09-15",
        "appointment_time": "10:00:00",
        "status": "cancelled",
    },
    {
        "id": "apt-003",
        "doctor_id": "staff-001",
        "appointment_date": "2025-09-15",
        "appointment_time": "09:00:00",
        "status": "pending",
    },
    {
        "id": "apt-004",
        "doctor_id": "doc-002",
        "appointment_date": "2025-09-12",
        "appointment_time": "14:00:00",
        "status": "confirmed",
    },
]
