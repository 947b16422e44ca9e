from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException

from tune_core.config import load_config
from tune_core.core.apportion import ApportionOptions, apportion
from tune_core.core.errors import InvalidInventory, InvalidUnitFormat, UnsupportedTopology
from tune_core.core.settings import HostResources
from tune_core.core.topology import InfrastructureShape, SERVICES
from tune_core.inventory import InventoryValidator
from tune_core.tune import Tuner, TuneOptions

logger = logging.getLogger(__name__)

config = load_config()
validator = InventoryValidator(config.inventory.schema_path)
tuner = Tuner(config)

app = FastAPI(title="Tune Core Server")

_SHAPE_FIELDS = ("is_monolithic", "has_compile_masters", "has_replica", "has_external_database", "jruby9k_enabled")
_OPTION_FIELDS = ("common", "force", "memory_per_worker", "use_current_memory_per_worker", "jruby9k_enabled")


def _bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=400, detail=str(exc))


@app.post("/v1/apportion")
def apportion_host(request: dict[str, Any]) -> dict[str, Any]:
    try:
        raw_resources = request["resources"]
        resources = HostResources(cpu=raw_resources["cpu"], ram=raw_resources["ram"])
    except (KeyError, TypeError) as exc:
        raise HTTPException(status_code=400, detail=f"missing resources: {exc}") from exc
    except InvalidInventory as exc:
        raise _bad_request(exc) from exc

    classes = set(request.get("classes", []))
    unknown = sorted(classes - set(SERVICES))
    if unknown:
        raise HTTPException(status_code=400, detail=f"unknown classes: {', '.join(unknown)}")

    raw_shape = request.get("infrastructure", {})
    shape = InfrastructureShape(**{name: bool(raw_shape[name]) for name in _SHAPE_FIELDS if name in raw_shape})
    try:
        options = ApportionOptions(
            memory_per_worker=request.get("memory_per_worker"),
            memory_reserved_for_os=config.apportion.memory_reserved_for_os_mb,
        )
    except InvalidInventory as exc:
        raise _bad_request(exc) from exc
    return apportion(resources, classes, shape, options).to_document()


@app.post("/v1/tune")
def tune_inventory(request: dict[str, Any]) -> dict[str, Any]:
    raw_options = request.get("options", {})
    options = TuneOptions(**{name: raw_options[name] for name in _OPTION_FIELDS if name in raw_options})
    try:
        inventory = validator.validate(request.get("inventory"))
        report = tuner.run(inventory, options=options)
    except (InvalidInventory, InvalidUnitFormat) as exc:
        raise _bad_request(exc) from exc
    except UnsupportedTopology as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    logger.info("tuned %s host(s), %s error(s)", len(report.hosts), len(report.errors))
    return report.to_document()
