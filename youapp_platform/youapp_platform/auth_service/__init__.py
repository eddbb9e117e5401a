"""
auth_service package

Authentication service for the YouApp platform. It includes:

- Password hashing and JWT issuance/verification (`auth.py`)
- User directory client (`directory.py`)
- Registration, login, refresh and validation logic (`service.py`)
- Message gateway and RabbitMQ request/reply transport (`gateway.py`, `transport.py`)
- HTTP gateway routers (`app.py`, `routes/`)

`main.py` is the entry point of the auth worker.
"""
