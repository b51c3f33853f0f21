from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ServiceDescriptor(BaseModel):
    """
    Static description of an AFIP web service: WSDL files and endpoint
    URLs for production and test (homologation), plus SOAP client flags.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    wsdl: str = Field(..., alias="WSDL", min_length=1)
    url: str = Field(..., alias="URL", min_length=1)
    wsdl_test: str = Field(..., alias="WSDL_TEST", min_length=1)
    url_test: str = Field(..., alias="URL_TEST", min_length=1)
    soap_v12: bool = Field(False, alias="soapV12")
    ns_array_elems: bool = Field(True, alias="nsArrayElems")


class ServiceTicket(BaseModel):
    """
    Access ticket issued by the authentication authority (WSAA) for one service.
    Accepts a mapping or any object exposing ``token`` and ``sign``.
    """
    model_config = ConfigDict(from_attributes=True)

    token: str = Field(..., min_length=1)
    sign: str = Field(..., min_length=1)
    expiration: Optional[str] = None
