import base64
import json

from shared.catalog.models.CatalogRecord import IndexDocument
from shared.clients.index.IndexClientInterface import IndexClientInterface
from shared.clients.index.models.SearchHit import SearchHit
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

# document fields matched by a phrase query
SEARCH_FIELDS = [
    "category",
    "description",
    "hsCode",
    "tariffCode",
    "country",
    "explanationSheet",
    "vote",
]


class IndexClientOpensearch(IndexClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._username = self.get_config_val("USERNAME", default="", val_type="string")
        self._password = self.get_config_val("PASSWORD", default="", val_type="string")
        self._index_name = self.get_config_val("INDEX", default="catalog", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "OpenSearch"

    def get_index_name(self) -> str:
        return self._index_name

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="USERNAME", val_type="string", default=""),
            EnvConfig(env_key="PASSWORD", val_type="string", default=""),
            EnvConfig(env_key="INDEX", val_type="string", default="catalog"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._username:
            token = base64.b64encode(f"{self._username}:{self._password}".encode("utf-8")).decode("ascii")
            return {"Authorization": f"Basic {token}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/_cluster/health"

    def _get_endpoint_index(self) -> str:
        return f"/{self._index_name}"

    def _get_endpoint_document(self, doc_id: str) -> str:
        return f"/{self._index_name}/_doc/{doc_id}"

    def _get_endpoint_bulk(self) -> str:
        return "/_bulk"

    def _get_endpoint_search(self) -> str:
        return f"/{self._index_name}/_search"

    def _get_endpoint_refresh(self) -> str:
        return f"/{self._index_name}/_refresh"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_create_index_payload(self) -> dict:
        text = {"type": "text"}
        return {
            "mappings": {
                "properties": {
                    "id": {"type": "long"},
                    "createdAt": {"type": "date"},
                    # stored for display only, never matched
                    "pictureRef": {"type": "keyword", "index": False},
                    **{field: text for field in SEARCH_FIELDS},
                }
            }
        }

    def get_bulk_payload(self, documents: list[tuple[str, IndexDocument]]) -> str:
        lines: list[str] = []
        for doc_id, document in documents:
            lines.append(json.dumps({"index": {"_index": self._index_name, "_id": doc_id}}, ensure_ascii=False))
            lines.append(json.dumps(document.to_source(), ensure_ascii=False))
        return "\n".join(lines) + "\n"

    def get_search_payload(self, query: str, limit: int, with_source: bool) -> dict:
        return {
            "size": limit,
            "query": {
                "multi_match": {
                    "query": query,
                    "type": "phrase",
                    "fields": SEARCH_FIELDS,
                }
            },
            "_source": with_source,
        }

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_search_hits(self, raw_response: dict) -> list[SearchHit]:
        hits = raw_response.get("hits", {}).get("hits", [])
        return [
            SearchHit(id=str(hit["_id"]), score=hit.get("_score") or 0.0, source=hit.get("_source"))
            for hit in hits
        ]

    def extract_bulk_failures(self, raw_response: dict) -> list[str]:
        if not raw_response.get("errors"):
            return []
        failed: list[str] = []
        for item in raw_response.get("items", []):
            action = item.get("index") or item.get("create") or item.get("update") or {}
            if action.get("error"):
                failed.append(str(action.get("_id")))
        return failed
