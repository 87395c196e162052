"""
http://jsonapi.org/format/#content-negotiation-servers

Servers MUST send all JSON API data in response documents with the header
"Content-Type: application/vnd.api+json" without any media type parameters.
"""
from functools import cached_property
from flask import Request
import sara
from .errors import ValidationError
from .parameters import QueryParameters
from .resource import ResourceObject


# pylint: disable=too-many-ancestors
class SARARequest(Request):
    """
    Parse the jsonapi request:
    - query args: include, fields[], sort, page[], filter[]
    - body: the resource object in the "data" member
    """

    jsonapi_content_types = ["application/json", "application/vnd.api+json"]

    @property
    def is_jsonapi(self) -> bool:
        """
        :return: whether the request content type is jsonapi
        """
        if not isinstance(self.content_type, str):
            return False
        return self.content_type.split(";")[0].strip() in self.jsonapi_content_types

    @cached_property
    def query_parameters(self) -> QueryParameters:
        return QueryParameters.from_args(self.args)

    def get_jsonapi_payload(self) -> dict:
        """
        :return: jsonapi request payload
        """
        if not self.is_jsonapi:
            sara.log.warning(f'Invalid Media Type! "{self.content_type}"')
        result = self.get_json(force=True, silent=True)
        if not isinstance(result, dict):
            raise ValidationError(f"Invalid JSON Payload : {result}")
        return result

    def get_resource(self) -> ResourceObject:
        """
        :return: the resource object sent in a POST or PATCH request
        """
        payload = self.get_jsonapi_payload()
        if "data" not in payload:
            raise ValidationError("Invalid payload (no data)")
        return ResourceObject.from_dict(payload["data"])
