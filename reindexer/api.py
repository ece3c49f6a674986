from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from reindexer.config import ReindexConfig
from reindexer.connections import create_client
from reindexer.engine import ReindexEngine
from reindexer.errors import ConfigurationError, CursorError
from reindexer.models import ReindexResult
from reindexer.targets import build_target
from reindexer.windows import parse_date

app = FastAPI(title="reindexer")


class ReindexRequest(BaseModel):
	index: str
	src_host: Optional[str] = None
	dst_host: Optional[str] = None
	destination: Optional[str] = None
	type: Optional[str] = None
	field: Optional[str] = None
	start_date: Optional[str] = None
	end_date: Optional[str] = None
	batch_size: Optional[int] = None
	window_days: Optional[int] = None
	cluster_name: Optional[str] = None


def _dates(field, start_date, end_date):
	if not field:
		return None, None
	start = parse_date(start_date)
	if start is None:
		raise ConfigurationError("start_date is required when field is given")
	return start, parse_date(end_date)


@app.get("/")
async def main():
	return JSONResponse(content={"message": "reindexer is running"})


@app.get("/estimate")
def estimate(index: str, field: Optional[str] = None, type: Optional[str] = None,
			 start_date: Optional[str] = Query(None, description="yyyyMMdd, inclusive, UTC"),
			 end_date: Optional[str] = Query(None, description="yyyyMMdd, exclusive, UTC"),
			 src_host: Optional[str] = None):
	client = None
	try:
		config = ReindexConfig.from_env()
		start, end = _dates(field, start_date, end_date)
		if type:
			raise ConfigurationError(f"Type filter '{type}' is not supported, Elasticsearch 8 has no mapping types")
		client = create_client(src_host or config.default_host, config=config)
		engine = ReindexEngine(client, client, index, index, range_field=field, config=config)
		count = engine.estimate(engine.overall_window(start, end))
	except ConfigurationError as e:
		raise HTTPException(status_code=400, detail=str(e))
	except CursorError as e:
		raise HTTPException(status_code=502, detail=str(e))
	finally:
		if client is not None:
			client.close()
	return {"index": index, "count": count}


@app.post("/reindex", response_model=ReindexResult)
def reindex(request: ReindexRequest):
	target = None
	try:
		config = ReindexConfig.from_env(batch_size=request.batch_size, window_days=request.window_days)
		start, end = _dates(request.field, request.start_date, request.end_date)
		target = build_target(
			request.src_host or config.default_host,
			request.index,
			dst_host=request.dst_host,
			destination_index=request.destination,
			doc_type=request.type,
			range_field=request.field,
			cluster_name=request.cluster_name,
			config=config,
		)
		return target.run(start, end, config.window_days)
	except ConfigurationError as e:
		raise HTTPException(status_code=400, detail=str(e))
	except CursorError as e:
		detail = {"message": str(e)}
		if e.result is not None:
			detail["result"] = e.result.model_dump()
		raise HTTPException(status_code=502, detail=detail)
	finally:
		if target is not None:
			target.close()
