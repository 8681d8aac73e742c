"""
Pytest configuration and fixtures for ClauseLens tests.
"""
import os
import sys
import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Environment must be set before settings are first loaded
os.environ["OPENAI_API_KEY"] = ""
os.environ["GENERATIVE_ENABLED"] = "false"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="clauselens-test-")
os.environ.setdefault("TESSERACT_PATH", "/usr/bin/tesseract")


SAMPLE_LEASE = """RESIDENTIAL LEASE AGREEMENT

This Lease Agreement is made between the Landlord, Mr. Sharma, and the Tenant, Ms. Rao, for the premises at 12 Park Street.

1. The Tenant shall pay a monthly rent of ₹15,000 on or before the 5th day of each month by bank transfer.
2. The Tenant shall pay a security deposit of ₹50,000 which will be refunded at the end of the lease term.
3. A late fee of ₹500 per day will be charged if rent is not paid within a 5 day grace period.
4. Either party may terminate this agreement by giving 30 days written notice to the other party.
5. The Tenant shall maintain the premises in good condition and repair any damage caused by the Tenant.
6. The lease begins on January 1, 2024 and expires on December 31, 2024 unless renewed by the parties.
"""


@pytest.fixture
def sample_lease_text() -> str:
    """A short numbered residential lease."""
    return SAMPLE_LEASE


@pytest.fixture
def enabled_settings():
    """Settings with the generative service switched on."""
    from core.config import Settings

    return Settings(
        openai_api_key="test-openai-key",
        generative_enabled=True,
        generative_retries=0,
        language_retries=0,
        retry_base_delay_seconds=0.0,
        retry_max_delay_seconds=0.0
    )


def make_completion(content: str) -> MagicMock:
    """Build an object shaped like an OpenAI chat completion."""
    completion = MagicMock()
    completion.choices = [MagicMock()]
    completion.choices[0].message.content = content
    return completion


@pytest.fixture
def completion():
    """Factory for fake chat completions."""
    return make_completion


@pytest.fixture
def generative_client(enabled_settings):
    """
    GenerativeClient whose OpenAI transport is a mock.

    Set `client.llm_client.chat.completions.create` return values or side
    effects per test.
    """
    from core.generative import GenerativeClient

    client = GenerativeClient(enabled_settings)
    client.llm_client = MagicMock()
    client.llm_client.chat.completions.create = AsyncMock()
    return client


@pytest.fixture
def test_client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    from main import app

    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def sample_pdf_content() -> bytes:
    """Generate sample PDF content for testing."""
    # Minimal valid PDF structure
    pdf_content = b"""%PDF-1.4
1 0 obj
<< /Type /Catalog /Pages 2 0 R >>
endobj
2 0 obj
<< /Type /Pages /Kids [3 0 R] /Count 1 >>
endobj
3 0 obj
<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R >>
endobj
4 0 obj
<< /Length 44 >>
stream
BT
/F1 12 Tf
100 700 Td
(Test Contract) Tj
ET
endstream
endobj
xref
0 5
0000000000 65535 f
0000000009 00000 n
0000000058 00000 n
0000000115 00000 n
0000000214 00000 n
trailer
<< /Size 5 /Root 1 0 R >>
startxref
306
%%EOF"""
    return pdf_content
