"""
Tests for the packing-slip services: auth injection, unwrapping, error
envelopes and the parameter mapping of each operation.
"""
from __future__ import annotations

import types
import unittest
from unittest.mock import AsyncMock, MagicMock

from afip_remitos.interfaces.common import ServerStatus
from afip_remitos.runtime import (
    AfipConfig,
    AfipError,
    AuthError,
    ConfigurationError,
    ServiceError,
    SoapGateway,
)
from afip_remitos.services.base import Operation, RequestExecutor, raise_for_errors, unwrap
from afip_remitos.services.flour import FlourPackingSlipService, strip_dummy_request
from afip_remitos.services.meat import MeatPackingSlipService
from afip_remitos.services.sugar import SugarPackingSlipService

CUIT = 20111111112


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def _gateway(response=None) -> MagicMock:
    gateway = MagicMock(spec=SoapGateway)
    gateway.config = AfipConfig(cuit=CUIT)
    gateway.execute_request = AsyncMock(return_value=response if response is not None else {})
    return gateway


def _authority() -> MagicMock:
    authority = MagicMock()
    authority.get_service_ticket = AsyncMock(return_value={"token": "TOKEN", "sign": "SIGN"})
    return authority


def _sent(gateway: MagicMock):
    """(operation, params, options) of the last gateway call."""
    return gateway.execute_request.call_args[0]


# ---------------------------------------------------------------------------
# 1. Shared helpers
# ---------------------------------------------------------------------------

class TestOperation(unittest.TestCase):

    def test_result_field_defaults_to_operation(self):
        self.assertEqual(Operation("registrarRecepcion").result_field, "registrarRecepcionReturn")

    def test_result_field_uses_result_operation(self):
        op = Operation("consultarRemitosReceptor", result="consultarRemitos")
        self.assertEqual(op.result_field, "consultarRemitosReturn")

    def test_requires_auth_by_default(self):
        self.assertTrue(Operation("x").requires_auth)


class TestRaiseForErrors(unittest.TestCase):

    def test_single_error(self):
        with self.assertRaises(ServiceError) as ctx:
            raise_for_errors({"Errors": {"Err": {"Code": 600, "Msg": "Token expirado"}}})
        self.assertEqual(str(ctx.exception), "(600) Token expirado")
        self.assertEqual(ctx.exception.code, 600)
        self.assertEqual(ctx.exception.message, "(600) Token expirado")
        self.assertEqual(ctx.exception.detail, "Token expirado")

    def test_first_of_many_errors(self):
        record = {"Errors": {"Err": [
            {"Code": 10, "Msg": "Primero"},
            {"Code": 20, "Msg": "Segundo"},
        ]}}
        with self.assertRaises(ServiceError) as ctx:
            raise_for_errors(record)
        self.assertEqual(str(ctx.exception), "(10) Primero")

    def test_no_errors_is_silent(self):
        raise_for_errors({"codRemito": 1})
        raise_for_errors({"Errors": None})
        raise_for_errors(None)
        raise_for_errors("OK")

    def test_empty_error_list_is_silent(self):
        raise_for_errors({"Errors": {"Err": []}})
        raise_for_errors({"Errors": {"Err": None}})
        raise_for_errors({"Errors": []})

    def test_error_without_message_gets_fallback(self):
        with self.assertRaises(ServiceError) as ctx:
            raise_for_errors({"Errors": {"Err": {"Code": 7}}})
        self.assertEqual(str(ctx.exception), "(7) Unknown error")

    def test_unrecognized_envelope_keeps_its_content(self):
        with self.assertRaises(ServiceError) as ctx:
            raise_for_errors({"Errors": {"Err": "Servicio no disponible"}})
        self.assertIsNone(ctx.exception.code)
        self.assertIn("Servicio no disponible", str(ctx.exception))
        self.assertNotIn("None", str(ctx.exception))

    def test_message_matches_str_across_error_family(self):
        for err in (AfipError("boom", code=1), AuthError("no ticket"), ServiceError(600, "Token expirado")):
            self.assertEqual(err.message, str(err))

    def test_repr(self):
        err = ServiceError(600, "Token expirado")
        self.assertEqual(repr(err), "ServiceError(code=600, message='(600) Token expirado')")


class TestUnwrap(unittest.TestCase):

    def test_extracts_result_field(self):
        self.assertEqual(unwrap({"fooReturn": {"a": 1}}, "fooReturn"), {"a": 1})

    def test_already_unwrapped_result_returned_as_is(self):
        self.assertEqual(unwrap({"a": 1}, "fooReturn"), {"a": 1})


class TestRequestExecutor(unittest.IsolatedAsyncioTestCase):

    async def test_accepts_sync_authority_and_ticket_objects(self):
        gateway = _gateway({"xReturn": {}})
        authority = MagicMock()
        authority.get_service_ticket.return_value = types.SimpleNamespace(token="T", sign="S")
        executor = RequestExecutor(gateway, authority, "wsremcarne")
        await executor.execute(Operation("x"))
        _, params, _ = _sent(gateway)
        self.assertEqual(params["authRequest"], {"token": "T", "sign": "S", "cuitRepresentada": CUIT})

    async def test_authority_failure_propagates(self):
        gateway = _gateway()
        authority = MagicMock()
        authority.get_service_ticket = AsyncMock(side_effect=AuthError("WSAA unavailable"))
        executor = RequestExecutor(gateway, authority, "wsremcarne")
        with self.assertRaises(AuthError):
            await executor.execute(Operation("x"))
        gateway.execute_request.assert_not_called()

    async def test_caller_params_extend_auth(self):
        gateway = _gateway({"xReturn": {}})
        executor = RequestExecutor(gateway, _authority(), "wsremcarne")
        await executor.execute(Operation("x"), {"codRemito": 5})
        _, params, _ = _sent(gateway)
        self.assertEqual(set(params), {"authRequest", "codRemito"})

    async def test_disabled_error_checking_returns_envelope(self):
        envelope = {"Errors": {"Err": {"Code": 1, "Msg": "x"}}}
        gateway = _gateway({"xReturn": envelope})
        executor = RequestExecutor(gateway, _authority(), "wsremharina", error_checking_enabled=False)
        self.assertEqual(await executor.execute(Operation("x")), envelope)


# ---------------------------------------------------------------------------
# 2. Contract shared by every service
# ---------------------------------------------------------------------------

class _ServiceContract:
    """Mixed into one IsolatedAsyncioTestCase per service."""

    service_cls = None
    service_name = ""
    reception_kwargs: dict = {}
    reception_field = ""
    status_operation = ""

    def _service(self, response):
        self.gateway = _gateway(response)
        self.authority = _authority()
        return self.service_cls(
            AfipConfig(cuit=CUIT), self.authority,
            gateway=self.gateway, error_checking_enabled=True,
        )

    async def test_single_error_raises_service_error(self):
        service = self._service(
            {self.reception_field: {"Errors": {"Err": {"Code": 1001, "Msg": "Remito inexistente"}}}}
        )
        with self.assertRaises(ServiceError) as ctx:
            await service.register_reception(**self.reception_kwargs)
        self.assertEqual(str(ctx.exception), "(1001) Remito inexistente")

    async def test_first_of_two_errors_is_raised(self):
        service = self._service({self.reception_field: {"Errors": {"Err": [
            {"Code": 1, "Msg": "Primero"},
            {"Code": 2, "Msg": "Segundo"},
        ]}}})
        with self.assertRaises(ServiceError) as ctx:
            await service.register_reception(**self.reception_kwargs)
        self.assertEqual(ctx.exception.code, 1)
        self.assertEqual(str(ctx.exception), "(1) Primero")

    async def test_result_returned_unwrapped(self):
        value = {"codRemito": 123, "evento": {"codigo": "REC"}}
        service = self._service({self.reception_field: value})
        self.assertEqual(await service.register_reception(**self.reception_kwargs), value)

    async def test_auth_block_injected(self):
        service = self._service({self.reception_field: {}})
        await service.register_reception(**self.reception_kwargs)
        _, params, _ = _sent(self.gateway)
        self.assertEqual(
            params["authRequest"],
            {"token": "TOKEN", "sign": "SIGN", "cuitRepresentada": CUIT},
        )
        self.authority.get_service_ticket.assert_awaited_once_with(self.service_name)

    def test_config_optional_with_gateway(self):
        gateway = _gateway()
        service = self.service_cls(None, _authority(), gateway=gateway)
        self.assertIs(service.gateway, gateway)

    def test_mismatched_config_rejected(self):
        with self.assertRaises(ConfigurationError):
            self.service_cls(AfipConfig(cuit=20999999995), _authority(), gateway=_gateway())

    def test_missing_config_without_gateway_rejected(self):
        with self.assertRaises(ConfigurationError):
            self.service_cls(None, _authority())

    async def test_server_status_has_no_auth(self):
        service = self._service({
            f"{self.status_operation}Return": {"AppServer": "OK", "DbServer": "OK", "AuthServer": "OK"}
        })
        status = await service.get_server_status()
        operation, params, _ = _sent(self.gateway)
        self.assertEqual(operation, self.status_operation)
        self.assertNotIn("authRequest", params)
        self.authority.get_service_ticket.assert_not_called()
        self.assertIsInstance(status, ServerStatus)
        self.assertTrue(status.is_available)


class TestFlourContract(_ServiceContract, unittest.IsolatedAsyncioTestCase):
    service_cls = FlourPackingSlipService
    service_name = "wsremharina"
    reception_kwargs = {"slip_code": 123, "status": "S", "date": "2024-01-31"}
    reception_field = "operacionReturn"
    status_operation = "dummy"


class TestMeatContract(_ServiceContract, unittest.IsolatedAsyncioTestCase):
    service_cls = MeatPackingSlipService
    service_name = "wsremcarne"
    reception_kwargs = {"slip_code": 123, "status": "ACE", "category": 1}
    reception_field = "registrarRecepcionReturn"
    status_operation = "FEDummy"


class TestSugarContract(_ServiceContract, unittest.IsolatedAsyncioTestCase):
    service_cls = SugarPackingSlipService
    service_name = "wsremazucar"
    reception_kwargs = {"slip_code": 123, "status": "S"}
    reception_field = "confirmarRecepcionMercaderiaReturn"
    status_operation = "FEDummy"


# ---------------------------------------------------------------------------
# 3. Flour
# ---------------------------------------------------------------------------

class TestFlourService(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.gateway = _gateway({})
        self.service = FlourPackingSlipService(
            AfipConfig(cuit=CUIT), _authority(), gateway=self.gateway
        )

    def test_error_checking_disabled_by_default(self):
        self.assertFalse(self.service.error_checking_enabled)

    async def test_errors_returned_when_checking_disabled(self):
        envelope = {"Errors": {"Err": {"Code": 1, "Msg": "x"}}}
        self.gateway.execute_request.return_value = {"operacionReturn": envelope}
        result = await self.service.register_reception(slip_code=1, status="S")
        self.assertEqual(result, envelope)

    async def test_get_packing_slip_omits_missing_fields(self):
        await self.service.get_packing_slip(slip_code=10, type=995, loc=1, cuit=30111111118)
        operation, params, _ = _sent(self.gateway)
        self.assertEqual(operation, "consultarRemito")
        self.assertNotIn("nroComprobante", params)
        self.assertNotIn("idReqCliente", params)
        self.assertEqual(params["codRemito"], 10)
        self.assertEqual(params["tipoComprobante"], 995)
        self.assertEqual(params["puntoEmision"], 1)
        self.assertEqual(params["cuitEmisor"], 30111111118)

    async def test_get_packing_slip_unwraps_its_own_field(self):
        self.gateway.execute_request.return_value = {"consultarRemitoReturn": {"remito": {"codRemito": 10}}}
        result = await self.service.get_packing_slip(slip_code=10)
        self.assertEqual(result, {"remito": {"codRemito": 10}})

    async def test_receivers_with_range(self):
        self.gateway.execute_request.return_value = {"consultarRemitosReturn": {"arrayRemitos": []}}
        result = await self.service.get_packing_slips_receivers(
            status_type="PEN", from_date="2024-01-01", to_date="2024-01-31", page=3,
        )
        operation, params, _ = _sent(self.gateway)
        self.assertEqual(operation, "consultarRemitosReceptor")
        self.assertEqual(params["estadoRecepcion"], "PEN")
        self.assertEqual(
            params["rangoFechas"], {"fechaDesde": "2024-01-01", "fechaHasta": "2024-01-31"}
        )
        self.assertNotIn("nroPagina", params)
        self.assertEqual(result, {"arrayRemitos": []})

    async def test_receivers_range_needs_both_dates(self):
        await self.service.get_packing_slips_receivers(status_type="PEN", from_date="2024-01-01")
        _, params, _ = _sent(self.gateway)
        self.assertNotIn("rangoFechas", params)

    async def test_register_reception_params(self):
        products = [{"codigoProducto": 1, "cantidad": 10}]
        await self.service.register_reception(
            slip_code=55, status="S", date="2024-02-01", products=products,
        )
        operation, params, _ = _sent(self.gateway)
        self.assertEqual(operation, "registrarRecepcion")
        self.assertEqual(params["codRemito"], 55)
        self.assertEqual(params["aceptado"], "S")
        self.assertEqual(params["fecha"], "2024-02-01")
        self.assertEqual(params["arrayRecepcionMercaderia"], products)

    async def test_server_status_strips_empty_wrapper(self):
        self.gateway.execute_request.return_value = {
            "dummyReturn": {"appserver": "OK", "dbserver": "OK", "authserver": "OK"}
        }
        status = await self.service.get_server_status()
        _, _, options = _sent(self.gateway)
        self.assertIs(options["post_process"], strip_dummy_request)
        self.assertEqual(status, ServerStatus("OK", "OK", "OK"))


class TestStripDummyRequest(unittest.TestCase):

    def test_plain_wrapper(self):
        xml = "<soap:Body><dummyRequest></dummyRequest></soap:Body>"
        self.assertEqual(strip_dummy_request(xml), "<soap:Body></soap:Body>")

    def test_prefixed_self_closing_wrapper(self):
        xml = '<soap:Body><ns0:dummyRequest xmlns:ns0="http://x"/></soap:Body>'
        self.assertEqual(strip_dummy_request(xml), "<soap:Body></soap:Body>")

    def test_other_elements_untouched(self):
        xml = "<soap:Body><ns0:dummy/></soap:Body>"
        self.assertEqual(strip_dummy_request(xml), xml)


# ---------------------------------------------------------------------------
# 4. Meat
# ---------------------------------------------------------------------------

class TestMeatService(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.gateway = _gateway({})
        self.service = MeatPackingSlipService(
            AfipConfig(cuit=CUIT), _authority(), gateway=self.gateway
        )

    def test_error_checking_enabled_by_default(self):
        self.assertTrue(self.service.error_checking_enabled)

    async def test_receivers_params(self):
        self.gateway.execute_request.return_value = {"consultarRemitosReturn": {"arrayRemitos": []}}
        result = await self.service.get_packing_slips_receivers(status_type="ACE", page=2)
        operation, params, _ = _sent(self.gateway)
        self.assertEqual(operation, "consultarRemitosReceptor")
        self.assertEqual(params["estadoRecepcion"], "ACE")
        self.assertNotIn("nroPagina", params)
        self.assertEqual(result, {"arrayRemitos": []})

    async def test_receiver_category_types(self):
        categories = {"arrayCategoriasReceptor": [{"codigo": 1, "descripcion": "Carnicería"}]}
        self.gateway.execute_request.return_value = {"consultarCategoriasReceptorReturn": categories}
        result = await self.service.get_receivers_category_types()
        operation, params, _ = _sent(self.gateway)
        self.assertEqual(operation, "consultarTiposCategoriaReceptor")
        self.assertEqual(set(params), {"authRequest"})
        self.assertEqual(result, categories)

    async def test_register_reception_without_category(self):
        await self.service.register_reception(slip_code=9, status="NAC")
        _, params, _ = _sent(self.gateway)
        self.assertEqual(params["codRemito"], 9)
        self.assertEqual(params["estado"], "NAC")
        self.assertNotIn("categoriaReceptor", params)

    async def test_server_status_error_raises(self):
        self.gateway.execute_request.return_value = {
            "FEDummyReturn": {"Errors": {"Err": {"Code": 500, "Msg": "Servicio no disponible"}}}
        }
        with self.assertRaises(ServiceError):
            await self.service.get_server_status()

    def test_format_date_available_on_service(self):
        self.assertEqual(self.service.format_date(20240131), "2024-01-31")


# ---------------------------------------------------------------------------
# 5. Sugar
# ---------------------------------------------------------------------------

class TestSugarService(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.gateway = _gateway({})
        self.service = SugarPackingSlipService(
            AfipConfig(cuit=CUIT), _authority(), gateway=self.gateway
        )

    async def test_receivers_params(self):
        self.gateway.execute_request.return_value = {
            "consultarRemitosReceptorReturn": {"arrayRemitos": []}
        }
        result = await self.service.get_packing_slips_receivers(
            from_date="2024-01-01", to_date="2024-01-31", status="EMI", page=4,
        )
        operation, params, _ = _sent(self.gateway)
        self.assertEqual(operation, "consultarRemitosReceptor")
        self.assertEqual(params["fechaDesde"], "2024-01-01")
        self.assertEqual(params["fechaHasta"], "2024-01-31")
        self.assertEqual(params["estado"], "EMI")
        self.assertNotIn("numeroPagina", params)
        self.assertEqual(result, {"arrayRemitos": []})

    async def test_confirm_reception_params(self):
        await self.service.register_reception(slip_code=77, status="N")
        operation, params, _ = _sent(self.gateway)
        self.assertEqual(operation, "confirmarRecepcionMercaderia")
        self.assertEqual(params["codigoRemito"], 77)
        self.assertEqual(params["aceptaRecepcion"], "N")

    async def test_invalid_answer_never_reaches_gateway(self):
        with self.assertRaises(ValueError):
            await self.service.register_reception(slip_code=77, status="ACE")
        self.gateway.execute_request.assert_not_called()


if __name__ == "__main__":
    unittest.main()
