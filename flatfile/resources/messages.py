"""Human-readable ``mensaje`` strings returned to API clients."""

LIST_OK = "Operación exitosa"
CREATED = "Fichero guardado exitosamente"
READ_OK = "Fichero leído con éxito"
UPDATED = "Fichero actualizado exitosamente"
DELETED = "Fichero eliminado exitosamente"

MISSING_PARAMS = "Parámetros incompletos"
INVALID_NAME = "Nombre de fichero no válido"
ALREADY_EXISTS = "El fichero ya existe"
NOT_FOUND = "El fichero no existe"
INVALID_JSON = "Contenido no es un JSON válido"
INVALID_CSV = "Contenido no es un CSV válido"
INVALID_TEXT = "Contenido no es texto válido"
STORAGE_FAILURE = "Error de almacenamiento"
