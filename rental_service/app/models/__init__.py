from .drivers import Driver
from .vehicles import Vehicle
from .rental_contracts import RentalContract
from .payments import Payment
from .app_settings import AppSetting
from .notifications import Notification
from .vehicle_maintenance import VehicleMaintenance
from .vehicle_costs import VehicleCost
