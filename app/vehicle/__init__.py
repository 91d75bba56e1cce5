from .models import Vehicle
from .schemas import VehicleCreate, VehicleUpdate, VehicleResponse
from .crud import get_vehicles, get_vehicle, create_vehicle, update_vehicle, delete_vehicle

# Router last to avoid a circular import
from .routes import router
