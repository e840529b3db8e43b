"""Convert model instances into camelCase JSON-ready dicts."""


def _iso(value):
    return value.isoformat() if value else None


def _num(value):
    """Decimals are sent as JSON numbers."""
    return float(value) if value is not None else None


def _blank_to_none(value):
    return value or None


def serialize_user(user):
    if user is None:
        return None
    return {
        "id": user.pk,
        "name": user.get_display_name(),
        "email": user.email,
        "role": user.role,
    }


def serialize_org(org, counts=None):
    data = {
        "id": org.pk,
        "type": org.org_type,
        "name": org.name,
        "r2Scope": org.r2_scope,
        "riskTier": _blank_to_none(org.risk_tier),
        "active": org.active,
        "email": org.email,
        "phone": org.phone,
        "address": org.address,
        "city": org.city,
        "state": org.state,
        "zipCode": org.zip_code,
        "country": org.country,
        "createdAt": _iso(org.created_at),
        "updatedAt": _iso(org.updated_at),
    }
    if counts is not None:
        data["_count"] = counts
    return data


def serialize_location(location):
    if location is None:
        return None
    return {
        "id": location.pk,
        "orgId": location.org_id,
        "name": location.name,
        "address": location.address,
        "description": location.description,
        "isActive": location.is_active,
    }


def serialize_identifier(identifier):
    return {
        "id": identifier.pk,
        "idType": identifier.id_type,
        "idValue": identifier.id_value,
    }


def serialize_hard_drive(drive):
    return {
        "id": drive.pk,
        "serialNumber": drive.serial_number,
        "capacityGb": drive.capacity_gb,
        "valueUsd": _num(drive.value_usd),
        "destructionStatus": _blank_to_none(drive.destruction_status),
        "destructionCertificate": drive.destruction_certificate,
        "destroyedAt": _iso(drive.destroyed_at),
        "verifiedBy": serialize_user(drive.verified_by),
    }


def serialize_status_history(entry):
    return {
        "id": entry.pk,
        "fromStatus": entry.from_status,
        "toStatus": entry.to_status,
        "changedBy": serialize_user(entry.changed_by),
        "changedAt": _iso(entry.changed_at),
        "notes": entry.notes,
    }


def serialize_custody_event(event):
    return {
        "id": event.pk,
        "assetId": str(event.asset_id),
        "eventType": event.event_type,
        "fromLocation": serialize_location(event.from_location),
        "toLocation": serialize_location(event.to_location),
        "performedBy": serialize_user(event.performed_by),
        "eventTs": _iso(event.event_ts),
        "notes": event.notes,
    }


def serialize_step(step):
    return {
        "id": step.pk,
        "workOrderId": str(step.work_order_id),
        "sequence": step.sequence,
        "procedureCode": step.procedure_code,
        "startedAt": _iso(step.started_at),
        "endedAt": _iso(step.ended_at),
        "passed": step.passed,
        "notes": step.notes,
    }


def serialize_work_order(work_order, include_asset=False):
    data = {
        "id": str(work_order.pk),
        "assetId": str(work_order.asset_id),
        "woType": work_order.wo_type,
        "tech": serialize_user(work_order.tech),
        "notes": work_order.notes,
        "openedAt": _iso(work_order.opened_at),
        "closedAt": _iso(work_order.closed_at),
        "status": "open" if work_order.is_open else "closed",
        "steps": [serialize_step(s) for s in work_order.steps.all()],
    }
    if include_asset:
        data["asset"] = serialize_asset(work_order.asset)
    return data


def serialize_sanitization_result(result):
    action = result.action
    return {
        "id": result.pk,
        "actionId": action.pk,
        "assetId": str(result.asset_id),
        "method": action.method,
        "toolName": action.tool_name,
        "toolVersion": action.tool_version,
        "passed": result.passed,
        "verifier": serialize_user(result.verifier),
        "verifiedAt": _iso(result.verified_at),
        "certificateNumber": result.certificate_number,
        "notes": result.notes,
    }


def serialize_asset(asset, detail=False):
    data = {
        "id": str(asset.pk),
        "clientId": asset.client_id,
        "client": serialize_org(asset.client),
        "manufacturer": asset.manufacturer,
        "model": asset.model,
        "purchaseDate": _iso(asset.purchase_date),
        "processor": asset.processor,
        "ramSizeGb": asset.ram_size_gb,
        "storageType": asset.storage_type,
        "storageCapacityGb": asset.storage_capacity_gb,
        "screenSizeInches": _num(asset.screen_size_inches),
        "operatingSystem": asset.operating_system,
        "currentStatus": asset.current_status,
        "currentLocationId": asset.current_location_id,
        "currentLocation": serialize_location(asset.current_location),
        "assignedToId": asset.assigned_to_id,
        "assignedTo": serialize_user(asset.assigned_to),
        "dataBearing": asset.data_bearing,
        "hazmat": asset.hazmat,
        "resaleValue": _num(asset.resale_value),
        "r2v3Compliance": _blank_to_none(asset.r2v3_compliance),
        "complianceNotes": asset.compliance_notes,
        "complianceSummary": asset.compliance_summary,
        "suggestedNextAction": asset.suggested_next_action,
        "identifiers": [
            serialize_identifier(i) for i in asset.identifiers.all()
        ],
        "createdAt": _iso(asset.created_at),
        "updatedAt": _iso(asset.updated_at),
    }
    if detail:
        data.update(
            {
                "hardDrives": [
                    serialize_hard_drive(d) for d in asset.hard_drives.all()
                ],
                "statusHistory": [
                    serialize_status_history(h)
                    for h in asset.status_history.all()
                ],
                "custodyEvents": [
                    serialize_custody_event(e)
                    for e in asset.custody_events.all()
                ],
                "workOrders": [
                    serialize_work_order(w) for w in asset.work_orders.all()
                ],
                "sanitizationResults": [
                    serialize_sanitization_result(r)
                    for r in asset.sanitization_results.all()
                ],
            }
        )
    return data


def serialize_sales_order(order):
    return {
        "id": order.pk,
        "orderNumber": order.order_number,
        "customerId": order.customer_id,
        "status": order.status,
        "notes": order.notes,
        "createdAt": _iso(order.created_at),
        "lines": [
            {
                "id": line.pk,
                "assetId": str(line.asset_id),
                "unitPrice": _num(line.unit_price),
                "totalPrice": _num(line.total_price),
            }
            for line in order.lines.all()
        ],
    }


def serialize_intake_order(order):
    return {
        "id": order.pk,
        "orderNumber": order.order_number,
        "clientId": order.client_id,
        "client": serialize_org(order.client),
        "receivedDate": _iso(order.received_date),
        "packingListNum": order.packing_list_num,
        "totalWeightKg": _num(order.total_weight_kg),
        "notes": order.notes,
        "createdAt": _iso(order.created_at),
        "lines": [
            {
                "id": line.pk,
                "description": line.description,
                "quantity": line.quantity,
                "weightKg": _num(line.weight_kg),
                "assetId": str(line.asset_id) if line.asset_id else None,
                "asset": (
                    {
                        "id": str(line.asset.pk),
                        "manufacturer": line.asset.manufacturer,
                        "model": line.asset.model,
                        "currentStatus": line.asset.current_status,
                    }
                    if line.asset_id
                    else None
                ),
            }
            for line in order.lines.all()
        ],
    }


def serialize_image(image):
    return {
        "id": image.pk,
        "name": image.name,
        "url": image.image.url,
        "contentType": image.content_type,
        "size": image.size,
        "uploadedAt": _iso(image.uploaded_at),
    }
