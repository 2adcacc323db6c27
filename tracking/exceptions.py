from rest_framework import status
from rest_framework.exceptions import APIException


class MutationFailed(APIException):
    """
    Generic failure of an insert, update or delete against the store.

    The message shown to the caller is always the plain "Failed to <action> <thing>"
    text; the underlying database error is only logged.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'The change could not be saved.'
    default_code = 'mutation_failed'

    def __init__(self, action, label):
        super().__init__(detail=f'Failed to {action} {label}')
