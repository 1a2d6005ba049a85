from common.exceptions import DomainError


class SurveyClosedError(DomainError):
    default_code = "survey_closed"


class VersioningError(DomainError):
    default_code = "versioning"
