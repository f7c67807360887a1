"""Site Attendance package.

Field-worker attendance (geofenced arrivals/departures, off-site hours, mileage and
material reimbursement) turned into payroll figures. Organized by feature modules
(sites, attendance, payroll, requests, ...) with a thin Flask controller layer on top
of service/repository layers.
"""
