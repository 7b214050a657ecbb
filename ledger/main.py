"""FastAPI application for Finledger."""

import logging

from fastapi import FastAPI, File, Form, Header, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from ledger.config import settings
from ledger.db.sqlite import db
from ledger.logging_setup import setup_logging
from ledger.models import (
    Account,
    AccountCreate,
    CategoryMapping,
    CategoryPatternCreate,
    OFXImport,
    OFXImportRequest,
    OFXImportResponse,
    OFXParseResponse,
    OFXValidationResponse,
    Transaction,
)
from ledger.parsers.validation import ValidationError
from ledger.services.ofx_import import (
    AccountNotFound,
    check_upload,
    commit_ofx_import,
    parse_statement_upload,
    validate_upload,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Finledger",
    description="Personal finance ledger with OFX bank statement import",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup():
    """Initialize on startup."""
    setup_logging(settings.log_level)
    settings.ensure_directories()
    settings.log_config()


def _user_id(x_user_id: int | None) -> int:
    """Resolve the acting user (authentication is handled upstream)."""
    return x_user_id if x_user_id is not None else settings.default_user_id


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "transaction_count": db.get_transaction_count()}


# ==================== ACCOUNTS ====================


@app.post("/accounts", response_model=Account, status_code=201)
async def create_account(account: AccountCreate, x_user_id: int | None = Header(default=None)):
    """Create an account to import statements into."""
    return db.create_account(_user_id(x_user_id), account)


@app.get("/accounts", response_model=list[Account])
async def list_accounts(x_user_id: int | None = Header(default=None)):
    """List the user's accounts."""
    return db.get_accounts(_user_id(x_user_id))


@app.get("/accounts/{account_id}", response_model=Account)
async def get_account(account_id: int, x_user_id: int | None = Header(default=None)):
    """Get a single account."""
    account = db.get_account(account_id, _user_id(x_user_id))
    if account is None:
        raise HTTPException(status_code=404, detail=f"Account {account_id} not found")
    return account


@app.get("/transactions", response_model=list[Transaction])
async def get_transactions(
    account_id: int | None = None,
    limit: int = 100,
    x_user_id: int | None = Header(default=None),
):
    """Get transactions, most recent first."""
    return db.get_transactions(_user_id(x_user_id), account_id=account_id, limit=limit)


# ==================== OFX IMPORT ====================


async def _read_upload(file: UploadFile) -> bytes:
    contents = await file.read()
    try:
        check_upload(file.filename, contents)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return contents


@app.post("/ofx/validate", response_model=OFXValidationResponse)
async def validate_ofx_file(file: UploadFile = File(...)):
    """Check whether an uploaded file looks like an OFX statement."""
    contents = await _read_upload(file)
    return validate_upload(contents)


@app.post("/ofx/parse", response_model=OFXParseResponse)
async def parse_ofx_file(
    file: UploadFile = File(...),
    account_id: int = Form(...),
    x_user_id: int | None = Header(default=None),
):
    """Parse an OFX statement and preview it against an account."""
    contents = await _read_upload(file)

    try:
        return parse_statement_upload(_user_id(x_user_id), account_id, file.filename, contents)
    except AccountNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"Error parsing OFX file {file.filename}")
        raise HTTPException(status_code=500, detail=f"Error processing file: {str(e)}")


@app.post("/ofx/import", response_model=OFXImportResponse)
async def import_ofx_transactions(request: OFXImportRequest, x_user_id: int | None = Header(default=None)):
    """Persist the selected transactions of a reviewed OFX preview."""
    try:
        return commit_ofx_import(_user_id(x_user_id), request)
    except AccountNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/ofx/imports", response_model=list[OFXImport])
async def list_ofx_imports(account_id: int | None = None, x_user_id: int | None = Header(default=None)):
    """Get OFX import history, newest first."""
    return db.get_ofx_imports(_user_id(x_user_id), account_id=account_id)


# ==================== CATEGORY MAPPINGS ====================


@app.get("/category-mappings", response_model=list[CategoryMapping])
async def list_category_mappings(x_user_id: int | None = Header(default=None)):
    """Get the user's active description patterns."""
    return db.get_category_mappings(_user_id(x_user_id))


@app.post("/category-mappings", response_model=CategoryMapping, status_code=201)
async def create_category_mapping(mapping: CategoryPatternCreate, x_user_id: int | None = Header(default=None)):
    """Add a description pattern used to pre-fill categories on import."""
    return db.add_category_mapping(_user_id(x_user_id), mapping)


@app.delete("/category-mappings/{mapping_id}")
async def delete_category_mapping(mapping_id: int, x_user_id: int | None = Header(default=None)):
    """Remove a description pattern."""
    if not db.delete_category_mapping(mapping_id, _user_id(x_user_id)):
        raise HTTPException(status_code=404, detail=f"Category mapping {mapping_id} not found")
    return {"status": "deleted"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ledger.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.dev_mode,
    )
