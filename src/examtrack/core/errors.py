class ScoringError(ValueError):
    pass


class InvalidCountError(ScoringError):
    pass


class UnknownFormatError(ScoringError):
    pass


class UnknownSubjectError(ScoringError):
    pass


class InvalidRecordError(ScoringError):
    pass


class MixedRecordKindsError(ScoringError):
    pass
