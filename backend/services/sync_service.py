"""Bulk sync of offline collected records into the survey tables."""
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import insert, update
from shared.enums import UpdateType, SyncErrorType, SKILL_CODES, BARRIER_CODES, OCCUPATION_CODES
from shared.models import now, APP_TIMEZONE
from shared.schemas import SyncOperation, SyncError, RejectedRecord, SyncReport
from shared.validation import format_validation_error
from ..models import (
    db, Community, SkillsSurveySubmission, BasicInformation, DemographicInformation,
    CurrentSkills, SkillsNeed, DesiredSkills, PerceptionOfSkills
)
from .storage import get_storage

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION_CODE = '23505'
FOREIGN_KEY_VIOLATION_CODE = '23503'
UNIQUE_PATTERN = re.compile(r'duplicate key value|unique', re.IGNORECASE)
FOREIGN_KEY_PATTERN = re.compile(r'foreign key', re.IGNORECASE)

IMAGE_PATH_TEMPLATE = 'nomadic/basic-information/{record_id}.{ext}'


@dataclass
class Attachment:
    """An uploaded file, read once so several operations can share it."""
    mimetype: Optional[str]
    data: bytes

    @classmethod
    def from_upload(cls, upload):
        return cls(upload.mimetype, upload.read())


@dataclass
class SyncResult:
    success: bool
    error: Optional[SyncError] = None
    record_id: Optional[str] = None


def _failure(message, record_id=None):
    return SyncResult(False, SyncError(type=SyncErrorType.OTHER, message=message), record_id)


# Value converters for loosely typed client records. None passes through.

def _text(value):
    return value


def _number(value):
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return float(value)


def _flag(value):
    """Numeric truthiness: 1/'1' are true, 0/'0' and non numbers false."""
    if value is None or isinstance(value, bool):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return number == number and number != 0


def _timestamp(value):
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        # Epoch milliseconds, as produced by JavaScript clients
        parsed = datetime.fromtimestamp(value / 1000, APP_TIMEZONE)
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(APP_TIMEZONE)
    return parsed


def classify_database_error(error):
    """Map a database error onto a SyncError.

    Unique and foreign key failures are recognised by their PostgreSQL code or
    by the driver message, so SQLite and PostgreSQL classify the same way.
    """
    orig = getattr(error, 'orig', None) or error
    code = getattr(orig, 'pgcode', None) or getattr(orig, 'sqlite_errorname', None)
    message = str(orig) or 'Unknown database error'

    if code == UNIQUE_VIOLATION_CODE or UNIQUE_PATTERN.search(message):
        return SyncError(type=SyncErrorType.UNIQUE_VIOLATION, message='Unique constraint violation', code=code)
    if code == FOREIGN_KEY_VIOLATION_CODE or FOREIGN_KEY_PATTERN.search(message):
        return SyncError(type=SyncErrorType.FOREIGN_KEY_VIOLATION, message='Referenced data missing or invalid', code=code)
    return SyncError(type=SyncErrorType.OTHER, message=message, code=code)


class EntityHandler:
    """Insert-or-update of one table from a sync record.

    ``fields`` maps column names to a converter. A column is read from the
    record key of the same name unless ``aliases`` lists other keys for it.
    """

    def __init__(self, model, label, fields, actor_column=None, aliases=None):
        self.model = model
        self.label = label
        self.fields = fields
        self.actor_column = actor_column
        self.aliases = aliases or {}

    def _source_value(self, record, column):
        keys = self.aliases.get(column, (column,))
        present = [key for key in keys if key in record]
        if not present:
            return False, None
        for key in present:
            if record[key]:
                return True, record[key]
        return True, record[present[0]]

    def build_values(self, record, user, is_update):
        values = {}
        for column, convert in self.fields.items():
            present, raw = self._source_value(record, column)
            if present:
                values[column] = convert(raw)

        if self.actor_column:
            values[self.actor_column] = record.get(self.actor_column) or (user.id if user else None)

        if is_update:
            values['updated_at'] = now()
        else:
            if record.get('id'):
                values['id'] = record['id']
            values['created_at'] = _timestamp(record.get('created_at')) or now()
            values['updated_at'] = _timestamp(record.get('updated_at')) or now()
        return values

    def prepare(self, values, record, is_update):
        """Hook for table specific adjustments before the write."""
        return values

    def create(self, record, user):
        values = self.prepare(self.build_values(record, user, False), record, False)
        # Unset columns fall back to their defaults
        values = {key: value for key, value in values.items() if value is not None}
        db.session.execute(insert(self.model).values(**values))
        return SyncResult(True, record_id=record.get('id'))

    def update(self, record, user):
        record_id = record.get('id')
        if not record_id:
            return _failure('No ID provided for update')

        exists = db.session.query(self.model.id).filter(self.model.id == record_id).first()
        if not exists:
            return _failure(f'{self.label} not found', record_id)

        values = self.prepare(self.build_values(record, user, True), record, True)
        values.pop('id', None)
        values.pop('created_at', None)
        db.session.execute(
            update(self.model).where(self.model.id == record_id).values(**values)
        )
        return SyncResult(True, record_id=record_id)


class SubmissionHandler(EntityHandler):

    def build_values(self, record, user, is_update):
        values = super().build_values(record, user, is_update)
        if 'is_complete' in record:
            raw = record['is_complete']
            values['is_complete'] = raw if isinstance(raw, bool) else bool(_flag(raw)) if raw is not None else False
        elif not is_update:
            values['is_complete'] = False
        return values


class BasicInformationHandler(EntityHandler):
    """Basic information also stores the photo attached to the record."""

    def prepare(self, values, record, is_update):
        upload = record.get('file')
        record_id = record.get('id')
        if not values.get('image_url') and upload is not None and record_id:
            try:
                values['image_url'] = self.persist_image(upload, record_id)
            except Exception as e:
                # The record is still synced without its photo
                logger.warning(f"Failed to store image for basic information {record_id}: {e}")
        return values

    @staticmethod
    def persist_image(upload, record_id):
        mimetype = upload.mimetype or 'image/jpeg'
        ext = (mimetype.split('/')[1] if '/' in mimetype else '') or 'jpg'
        path = IMAGE_PATH_TEMPLATE.format(record_id=record_id, ext=ext.lower())

        data = upload.data
        get_storage().save(
            path,
            mimetype,
            data,
            {
                'ownerId': record_id,
                'ownerType': 'basic_information',
                'syncSource': 'mobile-app-multipart',
                'originalSize': str(len(data or b'')),
            },
            is_private=False
        )
        logger.info(f"Stored image for basic information {record_id} at {path}")
        return path


SECTION_FIELDS = {'submission_id': _text}

HANDLERS = {
    'communities': EntityHandler(
        Community, 'Community',
        {
            'state': _text,
            'zone': _text,
            'local_government_area': _text,
            'name_of_community': _text,
            'latitude': _number,
            'longitude': _number,
        },
        actor_column='created_by'
    ),
    'skills_survey_submissions': SubmissionHandler(
        SkillsSurveySubmission, 'Submission',
        {'submitted_at': _timestamp},
        actor_column='submitted_by'
    ),
    'basic_information': BasicInformationHandler(
        BasicInformation, 'Basic information',
        {
            **SECTION_FIELDS,
            'image_url': _text,
            'nin': _text,
            'community_id': _text,
            'date_of_survey': _timestamp,
            'state': _text,
            'local_government_area': _text,
            'name_of_community': _text,
            'zone': _text,
            'latitude': _number,
            'longitude': _number,
        },
        actor_column='entered_by',
        aliases={'image_url': ('image_url', 'imageUrl')}
    ),
    'demographic_information': EntityHandler(
        DemographicInformation, 'Demographic information',
        {
            **SECTION_FIELDS,
            'first_name': _text,
            'middle_name': _text,
            'last_name': _text,
            'sex': _text,
            'age_range': _text,
            'phone_number': _text,
            'email': _text,
            'level_of_education': _text,
            'type_of_nomadism': _text,
            **{f'occupation_{code}': _flag for code in OCCUPATION_CODES},
            'facial_capture_file_path': _text,
            'thumb_print_file_path': _text,
        },
        actor_column='entered_by'
    ),
    'current_skills': EntityHandler(
        CurrentSkills, 'Current skills',
        {
            **SECTION_FIELDS,
            'has_skills': _text,
            'skills_description': _text,
            'confidence_level': _text,
            'reason_for_no_skills': _text,
        },
        actor_column='entered_by'
    ),
    'skills_need': EntityHandler(
        SkillsNeed, 'Skills need',
        {
            **SECTION_FIELDS,
            'want_training': _text,
            'skills_to_learn': _text,
            'skills_relevance': _text,
        },
        actor_column='entered_by'
    ),
    'desired_skills': EntityHandler(
        DesiredSkills, 'Desired skills',
        {
            **SECTION_FIELDS,
            'community_skills_needed': _text,
            **{f'interested_{code}': _flag for code in SKILL_CODES},
            'most_preferred_skill': _text,
            'learning_method': _text,
            'available_resources': _text,
            'preferred_learning_time': _text,
            **{f'barrier_{code}': _flag for code in BARRIER_CODES},
            'available_for_external_training': _text,
            'external_training_timeline': _text,
        },
        actor_column='entered_by'
    ),
    'perception_of_skills': EntityHandler(
        PerceptionOfSkills, 'Perception of skills',
        {
            **SECTION_FIELDS,
            'skills_importance_for_development': _text,
            'community_skills_support_level': _text,
            'skills_effective_for_financial_security': _text,
            'experiences_with_skills_acquisition': _text,
            'suggestions_for_improvement': _text,
        },
        actor_column='entered_by'
    ),
}


class SyncService:
    """Applies a batch of offline changes record by record.

    Every operation is attempted and committed on its own; a failing record
    is rolled back and reported without affecting the rest of the batch.
    """

    def __init__(self, handlers=None):
        self.handlers = handlers if handlers is not None else HANDLERS

    @staticmethod
    def no_data_report():
        return SyncReport(success=False, message='No data to sync', total_processed=0, successful_records=0)

    def handle_sync(self, transaction, user=None, files=None):
        """Process ``transaction['crud']`` and return a SyncReport."""
        if not isinstance(transaction, dict) or not isinstance(transaction.get('crud'), list):
            return self.no_data_report()

        files = files or {}
        rejected = []
        total_processed = 0
        successful = 0

        for raw_op in transaction['crud']:
            total_processed += 1
            table = raw_op.get('type') if isinstance(raw_op, dict) else None
            if not isinstance(table, str):
                table = None
            raw_data = raw_op.get('data') if isinstance(raw_op, dict) else None
            fallback_id = raw_data.get('id') if isinstance(raw_data, dict) else None

            try:
                op = SyncOperation.model_validate(raw_op)
            except PydanticValidationError as e:
                result = _failure(f'Invalid sync operation: {format_validation_error(e)}')
            else:
                result = self._process_operation(op, user, files)

            if result.success:
                successful += 1
            else:
                record_id = result.record_id or fallback_id or 'unknown'
                logger.warning(
                    f"Sync record rejected: table={table} id={record_id} "
                    f"type={result.error.type} message={result.error.message}"
                )
                rejected.append(RejectedRecord(table=table, record_id=str(record_id), error=result.error))

        if not rejected:
            message = f'All {successful} records synced successfully'
        elif successful > 0:
            message = (f'{successful} of {total_processed} records synced successfully. '
                       f'{len(rejected)} records rejected.')
        else:
            message = f'Sync failed. All {total_processed} records rejected.'

        logger.info(f"Sync finished: {successful}/{total_processed} records applied")

        return SyncReport(
            success=not rejected,
            message=message,
            rejected_records=rejected or None,
            total_processed=total_processed,
            successful_records=successful
        )

    def _process_operation(self, op, user, files):
        if not op.has_data:
            return _failure('No data provided for sync operation')

        data = dict(op.data or {})
        if op.type == 'basic_information':
            file_key = data.get('image_uri') or data.get('imageUrl') or data.get('image_url')
            if isinstance(file_key, str) and file_key in files:
                data['file'] = files[file_key]

        if op.op == UpdateType.PUT.value:
            return self.apply(op.type, data, user, is_update=False)
        if op.op == UpdateType.PATCH.value:
            return self.apply(op.type, {'id': op.id, **data}, user, is_update=True)
        if op.op == UpdateType.DELETE.value:
            return _failure('DELETE operations not supported')
        return _failure(f'Unknown operation: {op.op}')

    def apply(self, table, record, user, is_update):
        """Run one handler inside its own transaction."""
        handler = self.handlers.get(table)
        if handler is None:
            return _failure(f'Unsupported table: {table}', record.get('id'))

        try:
            result = handler.update(record, user) if is_update else handler.create(record, user)
            if result.success:
                db.session.commit()
            else:
                db.session.rollback()
            return result
        except Exception as e:
            db.session.rollback()
            logger.debug(f"Sync write to {table} failed: {e}", exc_info=True)
            return SyncResult(False, classify_database_error(e), record.get('id'))


# Global instance
_sync_service = SyncService()


def get_sync_service():
    return _sync_service
