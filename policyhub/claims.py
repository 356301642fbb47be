from __future__ import annotations

import json
import logging
from typing import Any

import requests

from .config import Settings
from .errors import FraudAnalysisError
from .schemas import ClaimSubmission

logger = logging.getLogger(__name__)

ANALYZE_FRAUD_PATH = "/api/claims/analyze-fraud"
DEFAULT_HOST = "localhost:8000"

SUCCESS_MESSAGE = "Claim submitted successfully"
PROCESS_FAILURE = "Failed to process claim"
SUBMIT_FAILURE = "Failed to submit claim"


def resolve_base_url(host: str | None, settings: Settings) -> str:
    if settings.public_base_url:
        return settings.public_base_url.rstrip("/")
    protocol = "https" if settings.is_production else "http"
    return f"{protocol}://{host or DEFAULT_HOST}"


def build_fraud_request(submission: ClaimSubmission) -> dict[str, Any]:
    return {"claimData": submission.fraud_claim_data()}


def request_fraud_analysis(
    base_url: str,
    claim_data: dict[str, Any],
    http: Any | None = None,
    timeout: float | None = None,
) -> dict[str, Any]:
    """POST the claim to the fraud-analysis endpoint and return its JSON result.

    Raises FraudAnalysisError unless the service answers 2xx with a JSON object
    carrying a ``fraudRiskScore`` key. The score value itself is not inspected.
    """
    client = http or requests
    url = f"{base_url.rstrip('/')}{ANALYZE_FRAUD_PATH}"
    try:
        response = client.post(
            url,
            json={"claimData": claim_data},
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )
    except requests.RequestException as exc:
        raise FraudAnalysisError(f"Fraud analysis request failed: {exc}") from exc

    if not response.ok:
        error_text = response.text
        logger.error("Fraud analysis failed: %s", error_text)
        raise FraudAnalysisError(
            f"Failed to analyze claim for fraud: {error_text}",
            status_code=response.status_code,
        )

    try:
        result = response.json()
    except ValueError as exc:
        raise FraudAnalysisError(f"Invalid fraud analysis response: {exc}") from exc

    logger.info("Fraud analysis result: %s", result)
    if not isinstance(result, dict) or "fraudRiskScore" not in result:
        logger.error("Invalid fraud analysis response: %s", result)
        raise FraudAnalysisError("Invalid fraud analysis response")
    return result


def _parse_body(raw_body: bytes | str | dict[str, Any]) -> ClaimSubmission:
    body = json.loads(raw_body) if isinstance(raw_body, (bytes, str)) else raw_body
    logger.info("Claim submission body: %s", body)
    return ClaimSubmission.model_validate(body)


def submit_claim(
    raw_body: bytes | str | dict[str, Any],
    host: str | None,
    settings: Settings,
    http: Any | None = None,
) -> tuple[int, dict[str, Any]]:
    try:
        submission = _parse_body(raw_body)
        base_url = resolve_base_url(host, settings)
        logger.info("Using base URL: %s", base_url)

        try:
            fraud_analysis = request_fraud_analysis(
                base_url,
                build_fraud_request(submission)["claimData"],
                http=http,
                timeout=settings.fraud_analysis_timeout,
            )
            # Persisting the claim is left to the downstream claims service.
            return 200, {"message": SUCCESS_MESSAGE, "fraudAnalysis": fraud_analysis}
        except Exception as exc:
            logger.error("Fraud analysis error: %s", exc)
            return 500, {"error": PROCESS_FAILURE, "details": str(exc)}
    except Exception as exc:
        logger.error("Handler error: %s", exc)
        return 500, {"error": SUBMIT_FAILURE, "details": str(exc)}
