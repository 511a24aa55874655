#!/usr/bin/env python3
"""HTTP API for ARC-19 CID conversion.

Stateless: every answer is computed from the request, so any number of
gunicorn workers can serve it. Parsed CIDs are memoised per process.

Endpoints:
  GET /cid/<cid>
    - 200: {"cid": "...", "version": 0, "codec": "dag-pb", "reserve": "<hex>",
            "template_url": "template-ipfs://...", "gateway_url": "...", "ipfs_uri": "..."}
    - 400: {"error": "invalid_cid", "detail": "...", "cid": "..."}

  GET /reserve/<hex>?template=template-ipfs://...   (or ?version=1&codec=raw)
    - 200: same body as /cid/<cid> for the rebuilt CID
    - 400: {"error": "invalid_reserve" | "invalid_template" | "invalid_cid", "detail": "..."}

  POST /cids/batch
    - Body: {"cids": ["Qm...", "bafy...", ...]}
    - 200: {"results": {"Qm...": {...}, ...}, "invalid": {"xyz": "detail", ...}}
"""

from flask import Flask, jsonify, request
from functools import lru_cache
import os

# Optional Swagger documentation
try:
    from flasgger import Swagger
    SWAGGER_AVAILABLE = True
except ImportError:
    SWAGGER_AVAILABLE = False
    # Swagger is optional - API works without it

from hex_to_cid import parse_reserve_hex
from ipfs_cid import CID, DEFAULT_GATEWAY, ARC19TemplateURL
from mint_errors import InvalidCID, InvalidTemplateURL

MAX_BATCH_SIZE = 10000

GATEWAY = os.environ.get("IPFS_GATEWAY", DEFAULT_GATEWAY).rstrip("/")

app = Flask(__name__)

# Add Swagger documentation if available
if SWAGGER_AVAILABLE:
    swagger_config = {
        "headers": [],
        "specs": [
            {
                "endpoint": "apispec",
                "route": "/apispec.json",
                "rule_filter": lambda rule: True,
                "model_filter": lambda tag: True,
            }
        ],
        "static_url_path": "/flasgger_static",
        "swagger_ui": True,
        "specs_route": "/api-docs"
    }

    swagger_template = {
        "swagger": "2.0",
        "info": {
            "title": "ARC-19 CID API",
            "description": "Convert IPFS CIDs to ARC-19 reserve digests and template URLs, and back",
            "version": "1.0.0"
        },
        "basePath": "/",
    }

    swagger = Swagger(app, config=swagger_config, template=swagger_template)


# Hot CIDs are requested repeatedly; CID objects are immutable so they can be shared
@lru_cache(maxsize=10000)
def _cached_cid(value: str) -> CID:
    return CID(value)


def describe_cid(cid: CID) -> dict:
    """JSON body describing a CID and its ARC-19 representation."""
    return {
        "cid": cid.value,
        "version": cid.version,
        "codec": cid.codec,
        "reserve": cid.to_reserve_address().hex(),
        "template_url": cid.to_arc19_url(),
        "gateway_url": cid.gateway_url(GATEWAY),
        "ipfs_uri": cid.ipfs_uri,
    }


@app.get("/cid/<cid>")
def get_cid(cid: str):
    """
    Describe a CID.
    ---
    tags:
      - CIDs
    parameters:
      - name: cid
        in: path
        type: string
        required: true
        description: IPFS CID (Qm..., bafy... or bafk...)
        example: QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG
    responses:
      200:
        description: CID decoded
        schema:
          type: object
          properties:
            cid:
              type: string
            version:
              type: integer
            codec:
              type: string
            reserve:
              type: string
            template_url:
              type: string
            gateway_url:
              type: string
            ipfs_uri:
              type: string
      400:
        description: Not a CID usable with ARC-19
    """
    try:
        body = describe_cid(_cached_cid(cid))
    except InvalidCID as e:
        return jsonify({"error": "invalid_cid", "detail": e.detail, "cid": cid}), 400
    return jsonify(body)


@app.get("/reserve/<reserve_hex>")
def get_reserve(reserve_hex: str):
    """
    Rebuild a CID from a reserve digest.
    ---
    tags:
      - CIDs
    parameters:
      - name: reserve_hex
        in: path
        type: string
        required: true
        description: 64-character SHA-256 hex digest stored in the reserve address
      - name: template
        in: query
        type: string
        required: false
        description: ARC-19 template URL giving version and codec
        example: "template-ipfs://{ipfscid:1:raw:reserve:sha2-256}"
      - name: version
        in: query
        type: integer
        required: false
        description: CID version when no template is given (default 0)
      - name: codec
        in: query
        type: string
        required: false
        description: CIDv1 codec when no template is given (default dag-pb)
    responses:
      200:
        description: CID rebuilt
      400:
        description: Bad digest, template or codec
    """
    try:
        reserve = parse_reserve_hex(reserve_hex)
    except ValueError as e:
        return jsonify({"error": "invalid_reserve", "detail": str(e)}), 400

    template = request.args.get("template")
    try:
        if template:
            cid = CID.from_template(ARC19TemplateURL.parse(template), reserve)
        else:
            version_text = request.args.get("version", "0")
            if not version_text.isdigit():
                raise InvalidCID(f"Invalid CID version: {version_text}")
            version = int(version_text)
            codec = request.args.get("codec", "dag-pb")
            cid = CID.from_reserve_address(reserve, version, codec)
    except InvalidTemplateURL as e:
        return jsonify({"error": "invalid_template", "detail": e.detail}), 400
    except InvalidCID as e:
        return jsonify({"error": "invalid_cid", "detail": e.detail}), 400

    return jsonify(describe_cid(cid))


@app.post("/cids/batch")
def get_cids_batch():
    """
    Batch decode of multiple CIDs.
    ---
    tags:
      - CIDs
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          required:
            - cids
          properties:
            cids:
              type: array
              items:
                type: string
              description: Array of IPFS CIDs to decode
              example: ["QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG", "bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi"]
    responses:
      200:
        description: Batch results
        schema:
          type: object
          properties:
            results:
              type: object
              description: Dictionary mapping CID to its description
            invalid:
              type: object
              description: Dictionary mapping rejected CID to the reason
            total_requested:
              type: integer
            total_valid:
              type: integer
            total_invalid:
              type: integer
      400:
        description: Bad request (invalid input)
    """
    if not request.is_json:
        return jsonify({"error": "Content-Type must be application/json"}), 400

    data = request.get_json(silent=True)
    if not isinstance(data, dict) or "cids" not in data:
        return jsonify({"error": "Missing 'cids' field in request body"}), 400

    cids = data.get("cids", [])

    if not isinstance(cids, list):
        return jsonify({"error": "'cids' must be an array"}), 400

    if len(cids) == 0:
        return jsonify({"results": {}, "invalid": {}}), 200

    if len(cids) > MAX_BATCH_SIZE:
        return jsonify({
            "error": f"Batch size exceeds maximum of {MAX_BATCH_SIZE}",
            "received": len(cids)
        }), 400

    # Remove duplicates while preserving order
    seen = set()
    unique_cids = []
    for cid in cids:
        if not isinstance(cid, str):
            return jsonify({"error": "'cids' must contain only strings"}), 400
        if cid not in seen:
            seen.add(cid)
            unique_cids.append(cid)

    results = {}
    invalid = {}

    for cid in unique_cids:
        try:
            results[cid] = describe_cid(_cached_cid(cid))
        except InvalidCID as e:
            invalid[cid] = e.detail

    return jsonify({
        "results": results,
        "invalid": invalid,
        "total_requested": len(cids),
        "total_valid": len(results),
        "total_invalid": len(invalid)
    }), 200


@app.get("/health")
def health():
    """
    Health check endpoint.
    ---
    tags:
      - System
    responses:
      200:
        description: Service is healthy
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
    """
    return jsonify({"status": "ok"})


if __name__ == "__main__":
    # For development: single-threaded Flask server
    # For production: gunicorn -c gunicorn_config.py cid_api:app
    port = int(os.environ.get("PORT", 5000))
    app.run(host="0.0.0.0", port=port, debug=False, threaded=True)
