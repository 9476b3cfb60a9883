from fastapi import FastAPI, File, Form, HTTPException, UploadFile

from . import rules
from .convert import convert_csv_bytes
from .errors import CsvFormatterError
from .models import ConversionSettings, ConvertResponse, HealthResponse

app = FastAPI(
    title="csv-formatter",
    description="Convert delimited text between two CSV dialects",
    version="0.1.0",
)


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/convert", response_model=ConvertResponse)
async def convert_csv(
    file: UploadFile = File(...),
    input_delimiter: str = Form(rules.DEFAULT_DELIMITER),
    input_record_separator: str = Form(rules.DEFAULT_RECORD_SEPARATOR),
    input_quote: str = Form(rules.DEFAULT_QUOTE),
    input_quote_mode: str = Form(rules.DEFAULT_INPUT_QUOTE_MODE),
    input_escape: str = Form(rules.NULL_TOKEN),
    input_encoding: str = Form(rules.DEFAULT_ENCODING),
    ignore_surrounding_space: bool = Form(False),
    ignore_empty_lines: bool = Form(False),
    output_delimiter: str = Form(rules.DEFAULT_DELIMITER),
    output_record_separator: str = Form(rules.DEFAULT_RECORD_SEPARATOR),
    output_quote: str = Form(rules.DEFAULT_QUOTE),
    output_quote_mode: str = Form(rules.DEFAULT_OUTPUT_QUOTE_MODE),
    output_escape: str = Form(rules.NULL_TOKEN),
    output_encoding: str = Form(rules.DEFAULT_ENCODING),
    cleaning_strategy: str = Form(rules.DEFAULT_CLEANING_STRATEGY),
    flatten: bool = Form(False),
):
    if not (file.filename or "").lower().endswith(rules.ACCEPTED_UPLOAD_SUFFIXES):
        raise HTTPException(status_code=422, detail="Only CSV, TSV or TXT files are supported")

    settings = ConversionSettings(
        input_delimiter=input_delimiter,
        input_record_separator=input_record_separator,
        input_quote=input_quote,
        input_quote_mode=input_quote_mode,
        input_escape=input_escape,
        input_encoding=input_encoding,
        ignore_surrounding_space=ignore_surrounding_space,
        ignore_empty_lines=ignore_empty_lines,
        output_delimiter=output_delimiter,
        output_record_separator=output_record_separator,
        output_quote=output_quote,
        output_quote_mode=output_quote_mode,
        output_escape=output_escape,
        output_encoding=output_encoding,
        cleaning_strategy=cleaning_strategy,
        flatten=flatten,
    )

    raw = await file.read()
    try:
        return convert_csv_bytes(raw, settings)
    except (CsvFormatterError, UnicodeError) as e:
        raise HTTPException(status_code=422, detail=str(e))
