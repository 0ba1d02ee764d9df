# cacs_api/routes/forms.py
import logging

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from cacs_api.config import Settings, get_settings
from cacs_api.database import get_db
from cacs_api.errors import BadRequest, NotFound
from cacs_api.models.form_submission import FormSubmission
from cacs_api.schemas import form as schemas
from cacs_api.schemas.user import MessageResponse
from cacs_api.utils.mailer import admin_submission_email, thank_you_email
from cacs_api.utils.tokenJWT import get_current_user

router = APIRouter(prefix="/api/forms", tags=["Forms"])
logger = logging.getLogger(__name__)


def _get_submission_or_404(db: Session, submission_id: str) -> FormSubmission:
    submission = db.query(FormSubmission).filter(FormSubmission.id == submission_id).first()
    if not submission:
        raise NotFound("Submission not found")
    return submission


# Public endpoint behind the contact and quote forms
@router.post("/submit", response_model=schemas.SubmitResponse, status_code=status.HTTP_201_CREATED)
def submit_form(
    payload: schemas.FormSubmit,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    # lastName alone is not enough
    if not (payload.name or payload.first_name):
        raise BadRequest("Name is required")
    if not payload.email:
        raise BadRequest("Email is required")

    submission = FormSubmission(
        name=payload.canonical_name(),
        email=payload.email.lower(),
        subject=payload.subject,
        message=payload.message,
        first_name=payload.first_name,
        last_name=payload.last_name,
        mobile=payload.mobile,
        city=payload.city,
        service=payload.service,
        form_type=payload.form_type,
    )
    db.add(submission)
    db.commit()
    db.refresh(submission)
    logger.info("Form submission stored: id=%s type=%s", submission.id, submission.form_type)

    notifier = request.app.state.notifier
    notifier.enqueue(thank_you_email(submission.name, submission.email))
    if settings.ADMIN_EMAIL:
        notifier.enqueue(admin_submission_email(settings.ADMIN_EMAIL, submission, submission.created_at))

    return {
        "success": True,
        "message": "Form submitted successfully. Thank you email sent!",
        "submission_id": submission.id,
    }


# List every submission, newest first
@router.get("/submissions", response_model=schemas.SubmissionList)
def list_submissions(db: Session = Depends(get_db), claims: dict = Depends(get_current_user)):
    submissions = db.query(FormSubmission).order_by(FormSubmission.created_at.desc()).all()
    return {"success": True, "count": len(submissions), "submissions": submissions}


@router.get("/submissions/{submission_id}", response_model=schemas.SubmissionEnvelope)
def get_submission(submission_id: str, db: Session = Depends(get_db), claims: dict = Depends(get_current_user)):
    return {"success": True, "submission": _get_submission_or_404(db, submission_id)}


@router.put("/submissions/{submission_id}", response_model=schemas.SubmissionEnvelope)
def update_submission(
    submission_id: str,
    payload: schemas.FormSubmissionUpdate,
    db: Session = Depends(get_db),
    claims: dict = Depends(get_current_user),
):
    submission = _get_submission_or_404(db, submission_id)

    # Explicit nulls are ignored so required columns stay populated
    changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if "email" in changes:
        changes["email"] = changes["email"].lower()
    for field, value in changes.items():
        setattr(submission, field, value)

    db.commit()
    db.refresh(submission)
    logger.info("Form submission updated: id=%s fields=%s by=%s", submission.id, sorted(changes), claims["userId"])

    return {"success": True, "submission": submission}


@router.delete("/submissions/{submission_id}", response_model=MessageResponse)
def delete_submission(submission_id: str, db: Session = Depends(get_db), claims: dict = Depends(get_current_user)):
    submission = _get_submission_or_404(db, submission_id)
    db.delete(submission)
    db.commit()
    logger.info("Form submission deleted: id=%s by=%s", submission_id, claims["userId"])

    return {"success": True, "message": "Submission removed"}
