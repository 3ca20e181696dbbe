import os
import logging
from typing import Optional

import httpx
from fastapi import Depends, FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .dataset import Dataset
from .fetchers.report_fetcher import fetch_all_records
from .metrics import record_view, scrape_metrics
from .pivot import build_view
from .presentation import chart_option, table_layout
from .schemas import DimensionCatalog, FilterSpec, Granularity, ISO_DATE, PivotView
from .views import DEFAULT_END_DATE, DEFAULT_START_DATE, dashboard_filters, view_kind

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"), format="[ec2-dashboard] %(message)s")
LOG = logging.getLogger(__name__)

CORS_ALLOW_ORIGINS = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]

app = FastAPI(title="EC2 Cost Dashboard API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type"],
)

dataset = Dataset()


def get_dataset() -> Dataset:
    return dataset


def get_fetcher():
    return fetch_all_records


@app.on_event("startup")
def startup_event():
    dataset.load()


def view_filters(
    start_date: str = Query(DEFAULT_START_DATE, alias="startDate", pattern=ISO_DATE),
    end_date: str = Query(DEFAULT_END_DATE, alias="endDate", pattern=ISO_DATE),
    project_id: Optional[str] = Query(None, alias="projectId"),
    cost_center: Optional[str] = Query(None, alias="costCenter"),
    environment_type: Optional[str] = Query(None, alias="environmentType"),
    environment: Optional[str] = Query(None),
    instance_role: Optional[str] = Query(None, alias="instanceRole"),
) -> FilterSpec:
    return dashboard_filters(
        start_date=start_date,
        end_date=end_date,
        project_id=project_id,
        cost_center=cost_center,
        environment_type=environment_type,
        environment=environment,
        instance_role=instance_role,
    )


def _view(view: str, spec: FilterSpec, granularity: Granularity, show_total_line: bool, ds: Dataset) -> PivotView:
    try:
        kind = view_kind(view)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"unknown view: {view}")
    result = build_view(ds.records, spec, kind, granularity, show_total_line)
    record_view(result)
    return result


@app.get("/api/health")
def health(ds: Dataset = Depends(get_dataset)):
    return {"status": "ok", "records": len(ds.records), "loaded": not ds.loading}


@app.get("/api/proxy")
def proxy(fetch=Depends(get_fetcher)):
    try:
        return fetch()
    except (httpx.HTTPError, ValueError) as e:
        LOG.error(f"proxy error: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})


@app.get("/api/records")
def records(ds: Dataset = Depends(get_dataset)):
    return {
        "count": len(ds.records),
        "data": [r.model_dump(by_alias=True) for r in ds.records],
    }


@app.get("/api/dimensions", response_model=DimensionCatalog)
def dimensions(environment: Optional[str] = None, ds: Dataset = Depends(get_dataset)):
    return ds.catalog(environment)


@app.get("/api/views/{view}", response_model=PivotView)
def get_view(
    view: str,
    spec: FilterSpec = Depends(view_filters),
    granularity: Granularity = Granularity.ENVIRONMENT_TYPE,
    show_total_line: bool = Query(True, alias="showTotalLine"),
    ds: Dataset = Depends(get_dataset),
):
    return _view(view, spec, granularity, show_total_line, ds)


@app.get("/api/views/{view}/chart")
def get_chart(
    view: str,
    spec: FilterSpec = Depends(view_filters),
    granularity: Granularity = Granularity.ENVIRONMENT_TYPE,
    show_total_line: bool = Query(True, alias="showTotalLine"),
    ds: Dataset = Depends(get_dataset),
):
    return chart_option(_view(view, spec, granularity, show_total_line, ds))


@app.get("/api/views/{view}/table")
def get_table(
    view: str,
    spec: FilterSpec = Depends(view_filters),
    granularity: Granularity = Granularity.ENVIRONMENT_TYPE,
    ds: Dataset = Depends(get_dataset),
):
    return table_layout(_view(view, spec, granularity, False, ds))


@app.get("/metrics")
def metrics():
    output, ctype = scrape_metrics()
    return Response(content=output, media_type=ctype)
