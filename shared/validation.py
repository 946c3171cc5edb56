"""Input validation utilities."""
import re
import bleach


class ValidationError(Exception):
    """Raised when input validation fails."""
    pass


def format_validation_error(error):
    """Flatten a pydantic ValidationError into a single readable message.

    Each problem is rendered as ``field: message`` and the problems are
    joined with ``; `` so the client sees every failing field at once.
    """
    parts = []
    for item in error.errors():
        location = '.'.join(str(part) for part in item.get('loc', ()) if part != '__root__')
        message = item.get('msg', 'Invalid value')
        if message.startswith('Value error, '):
            message = message[len('Value error, '):]
        parts.append(f"{location}: {message}" if location else message)
    return '; '.join(parts)


class Validator:
    """Input validation utilities."""

    # Local part and domain labels must start and end with an alphanumeric character
    EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9]+([._%+-][a-zA-Z0-9]+)*@([a-zA-Z0-9]+([.-][a-zA-Z0-9]+)*\.)+[a-zA-Z]{2,}$')
    # Nigerian numbers: local 0XXXXXXXXXX or international +234XXXXXXXXXX
    PHONE_PATTERN = re.compile(r'^(\+?234|0)[789][01]\d{8}$')
    PHONE_CLEAN_PATTERN = re.compile(r'[\s().-]')
    # Any printable text; control characters are refused
    STORAGE_PATH_PATTERN = re.compile(r'^[^\x00-\x1f\x7f]+$')

    @staticmethod
    def validate_email(email):
        """Validate email format."""
        email = email.strip()
        if not Validator.EMAIL_PATTERN.match(email):
            raise ValidationError("Invalid email format")
        return email.lower()

    @staticmethod
    def validate_phone(phone):
        """Validate a Nigerian phone number and return it without separators."""
        phone_stripped = Validator.PHONE_CLEAN_PATTERN.sub('', phone.strip())
        if not Validator.PHONE_PATTERN.match(phone_stripped):
            raise ValidationError("Invalid phone number format")
        return phone_stripped

    @staticmethod
    def validate_coordinates(lat, lng):
        """Validate GPS coordinates and return them as floats."""
        try:
            lat_val = float(lat)
        except (ValueError, TypeError):
            raise ValidationError("Latitude must be a valid number")
        try:
            lng_val = float(lng)
        except (ValueError, TypeError):
            raise ValidationError("Longitude must be a valid number")

        if not (-90 <= lat_val <= 90):
            raise ValidationError("Latitude must be between -90 and 90")

        if not (-180 <= lng_val <= 180):
            raise ValidationError("Longitude must be between -180 and 180")

        return lat_val, lng_val

    @staticmethod
    def validate_choice(value, field_name, valid_choices):
        """Validate that value is in list of valid choices."""
        if value not in valid_choices:
            raise ValidationError(f"{field_name} must be one of: {', '.join(str(c) for c in valid_choices)}")
        return value

    @staticmethod
    def validate_storage_path(path):
        """Validate an object key used by the storage adapter.

        Keys are relative, slash separated and may not climb out of their
        namespace.
        """
        if not path or not isinstance(path, str):
            raise ValidationError("Storage path is required")

        if path.startswith('/') or '\\' in path:
            raise ValidationError("Invalid storage path - absolute paths not allowed")

        if any(part in ('', '.', '..') for part in path.split('/')):
            raise ValidationError("Invalid storage path - path traversal not allowed")

        if not Validator.STORAGE_PATH_PATTERN.match(path):
            raise ValidationError("Invalid characters in storage path")

        return path

    @staticmethod
    def sanitize_html(text):
        """Secure HTML sanitization using bleach library.

        Plain text is returned untouched to skip the HTML parse.
        """
        if not text:
            return text

        if '<' not in text and '>' not in text and '&' not in text:
            return text

        # Free text answers never need markup
        return bleach.clean(text, tags=[], attributes={}, strip=True)
