from fastapi import APIRouter, HTTPException

from app.models.recall import ProductLookup, RecallQuery
from app.services import recall_service

router = APIRouter()


@router.get("/")
async def list_recalls(
    search: str = "",
    category: str = "all",
    retailer: str = "all",
    riskLevel: str = "all",
    agency: str = "all",
    sortBy: str = "recallDate",
    sortOrder: str = "desc",
    page: str = "1",
):
    # Plain strings on purpose: bad values fall back to defaults instead of a 422
    query = RecallQuery(
        search=search,
        category=category,
        retailer=retailer,
        riskLevel=riskLevel,
        agency=agency,
        sortBy=sortBy,
        sortOrder=sortOrder,
        page=page,
    )
    return await recall_service.list_recalls(query)


@router.get("/news")
async def recall_news():
    records = await recall_service.recent_news()
    return {"records": records, "total": len(records)}


@router.post("/lookup")
async def lookup_product(body: ProductLookup):
    term = body.term()
    if not term:
        raise HTTPException(status_code=400, detail="Provide either a barcode or a product name")

    records = await recall_service.lookup_product(term)
    return {
        "searchTerm": term,
        "records": records,
        "total": len(records),
        "hasRecalls": bool(records),
        "riskLevel": records[0].riskLevel if records else "low",
    }


@router.get("/{recall_id}")
async def get_recall(recall_id: str):
    recall = await recall_service.get_recall(recall_id)
    if recall is None:
        raise HTTPException(status_code=404, detail=f"Recall {recall_id} not found")
    return recall
