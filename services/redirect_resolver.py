"""Maps payment result codes to the shopper's landing page."""

from typing import Optional

from models.payment import OutcomePage, ResultCode


RESULT_PAGES = {
    ResultCode.AUTHORISED.value: OutcomePage.SUCCESS,
    ResultCode.PENDING.value: OutcomePage.PENDING,
    ResultCode.RECEIVED.value: OutcomePage.PENDING,
    ResultCode.REFUSED.value: OutcomePage.FAILED,
}


def resolve(result_code: Optional[str]) -> OutcomePage:
    """
    Pick the landing page for a result code.

    Matching is exact and case-sensitive; unknown or missing codes
    land on the error page.
    """
    if not isinstance(result_code, str):
        return OutcomePage.ERROR
    return RESULT_PAGES.get(result_code, OutcomePage.ERROR)


def result_path(outcome: OutcomePage) -> str:
    return f"/result/{outcome.value}"
