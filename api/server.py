"""
FastAPI server exposing a table store session as a REST API.
"""

import logging
from typing import Any, Dict, List, Literal, Optional, Union

from fastapi import Body, Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, StrictInt, StrictStr

from tablestore.config import StoreConfig
from tablestore.engine import TableEngine
from tablestore.parser import SearchMode

app = FastAPI(title="Table Store API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_engine: Optional[TableEngine] = None


def get_engine() -> TableEngine:
    """Return the process-wide session, creating it on first use."""
    global _engine
    if _engine is None:
        _engine = TableEngine(StoreConfig.from_env())
    return _engine


# HTTP status per outcome error kind; anything else is a 400
STATUS_BY_ERROR = {
    'NoTable': 404,
    'NotFound': 404,
    'MalformedInput': 422,
    'StorageError': 500,
}

SEARCH_MODES = {
    'linear': SearchMode.LINEAR,
    'indexed': SearchMode.INDEX,
    'compare': SearchMode.BOTH,
}

Value = Union[StrictInt, StrictStr]


# Pydantic models for request validation
class ColumnSpec(BaseModel):
    name: str
    type: str = Field(description="INT or TEXT")


class TableCreate(BaseModel):
    name: Optional[str] = None
    columns: List[ColumnSpec]


class RowValues(BaseModel):
    values: List[Value]


class Condition(BaseModel):
    column: Union[StrictInt, StrictStr]
    predicate: str = Field(description="Operator (=, >=, <=, MAX, MIN, TOP, BOTTOM, CONTAINS) or predicate name")
    value: Optional[Value] = None


class SearchRequest(Condition):
    mode: Literal['linear', 'indexed', 'compare'] = 'compare'


class TableName(BaseModel):
    name: Optional[str] = None


def respond(outcome: Dict[str, Any]) -> Dict[str, Any]:
    """Return an OK outcome, or raise the HTTP error matching its kind."""
    if outcome['status'] != 'OK':
        status_code = STATUS_BY_ERROR.get(outcome['error'], 400)
        raise HTTPException(
            status_code=status_code,
            detail={'error': outcome['error'], 'message': outcome['message']}
        )
    return outcome


# ========== ENDPOINTS ==========

@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Table Store API",
        "version": "1.0.0",
        "endpoints": {
            "POST /table": "Create the table",
            "GET /table": "Schema and all rows",
            "POST /rows": "Append a row",
            "GET /rows/{n}": "Fetch row n",
            "PUT /rows/{n}": "Replace row n",
            "DELETE /rows/{n}": "Delete row n",
            "POST /search": "Search (linear, indexed or compare)",
            "POST /delete-where": "Delete all rows matched by a linear search",
            "POST /save": "Save the table",
            "POST /load": "Load a saved table",
            "GET /tables": "List saved tables",
            "POST /query": "Execute a raw command"
        }
    }


@app.post("/table")
async def create_table(table: TableCreate, engine: TableEngine = Depends(get_engine)):
    """Create a new table, replacing the current one."""
    return respond(engine.create_table([(col.name, col.type) for col in table.columns], table.name))


@app.get("/table")
async def show_table(engine: TableEngine = Depends(get_engine)):
    """Get the schema and every row of the current table."""
    return respond(engine.show())


@app.post("/rows")
async def append_row(row: RowValues, engine: TableEngine = Depends(get_engine)):
    return respond(engine.insert(row.values))


@app.get("/rows/{row_number}")
async def get_row(row_number: int, engine: TableEngine = Depends(get_engine)):
    return respond(engine.get_row(row_number))


@app.put("/rows/{row_number}")
async def update_row(row_number: int, row: RowValues, engine: TableEngine = Depends(get_engine)):
    return respond(engine.update_row(row_number, row.values))


@app.delete("/rows/{row_number}")
async def delete_row(row_number: int, engine: TableEngine = Depends(get_engine)):
    """Delete a row. Rows after it are renumbered."""
    return respond(engine.delete_row(row_number))


@app.post("/search")
async def search(request: SearchRequest, engine: TableEngine = Depends(get_engine)):
    """
    Search the current table.

    Indexed results have no row numbers; use a linear search to find rows
    to update or delete.
    """
    return respond(engine.search(request.column, request.predicate, request.value, SEARCH_MODES[request.mode]))


@app.post("/delete-where")
async def delete_where(condition: Condition, engine: TableEngine = Depends(get_engine)):
    return respond(engine.delete_where(condition.column, condition.predicate, condition.value))


@app.post("/save")
async def save_table(table: Optional[TableName] = None, engine: TableEngine = Depends(get_engine)):
    """Save the current table, by default under the name it was created or loaded with."""
    return respond(engine.save(table.name if table else None))


@app.post("/load")
async def load_table(table: TableName, engine: TableEngine = Depends(get_engine)):
    if not table.name:
        raise HTTPException(status_code=400, detail="Table name is required")
    return respond(engine.load(table.name))


@app.get("/tables")
async def list_tables(engine: TableEngine = Depends(get_engine)):
    """List all saved tables."""
    return engine.list_tables()


@app.post("/query")
async def execute_query(query: Dict[str, Any] = Body(...), engine: TableEngine = Depends(get_engine)):
    """Execute a raw command."""
    if "query" not in query:
        raise HTTPException(status_code=400, detail="Query string is required")
    return respond(engine.execute(query["query"]))


if __name__ == "__main__":
    import uvicorn

    config = StoreConfig.from_env()
    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=8000, workers=1)
