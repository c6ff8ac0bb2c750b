from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from feedtrade import __version__
from feedtrade.core.config import settings
from feedtrade.common.error_handlers import register_error_handlers
from feedtrade.api.v1 import (
    auth, user, contact, account, sale, purchase, delivery,
    payment, check, carrier, trash, audit, export, annotation, report,
)

app = FastAPI(title="Feed Trade Ledger", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Register API routers
app.include_router(auth.router, prefix="/api/v1/auth", tags=["authentication"])
app.include_router(user.router, prefix="/api/v1/users", tags=["users"])
app.include_router(contact.router, prefix="/api/v1/contacts", tags=["contacts"])
app.include_router(account.router, prefix="/api/v1/accounts", tags=["accounts"])
app.include_router(sale.router, prefix="/api/v1/sales", tags=["sales"])
app.include_router(
    purchase.router, prefix="/api/v1/purchases", tags=["purchases"])
app.include_router(
    delivery.router, prefix="/api/v1/deliveries", tags=["deliveries"])
app.include_router(payment.router, prefix="/api/v1/payments", tags=["payments"])
app.include_router(check.router, prefix="/api/v1/checks", tags=["checks"])
app.include_router(carrier.router, prefix="/api/v1/carriers", tags=["carriers"])
app.include_router(trash.router, prefix="/api/v1/trash", tags=["trash"])
app.include_router(audit.router, prefix="/api/v1/audit-logs", tags=["audit"])
app.include_router(export.router, prefix="/api/v1/exports", tags=["exports"])
app.include_router(
    annotation.router, prefix="/api/v1/annotations", tags=["annotations"])
app.include_router(report.router, prefix="/api/v1/reports", tags=["reports"])


@app.get("/")
def read_root():
    return {"message": "Welcome to the Feed Trade Ledger APIs!"}
