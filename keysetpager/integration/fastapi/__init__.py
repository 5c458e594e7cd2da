""" FastAPI integration: get Pagination Requests from URL parameters """

from .pagination_request import pagination_request
from .errors import pagination_error_handler, install_error_handlers
