from marshmallow import Schema, fields, pre_load, validates, ValidationError

MIN_PASSWORD_LENGTH = 6


def _norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


class _EmailNormalizingSchema(Schema):
    @pre_load
    def normalize(self, data, **kwargs):
        if isinstance(data, dict) and "email" in data:
            data = dict(data, email=_norm_email(data["email"]))
        return data


class RegisterSchema(_EmailNormalizingSchema):
    email = fields.Email(required=True)
    password = fields.String(required=True, load_only=True)

    @validates("password")
    def validate_password(self, value, **kwargs):
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
            )


class LoginSchema(_EmailNormalizingSchema):
    # no format or length rules here: a failed login must not describe the policy
    email = fields.String(required=True)
    password = fields.String(required=True, load_only=True)
