#    figgis/store.py - durable XML files for Figgis.
#    Copyright (C) 2009 Shawn Sulma <genosha@470th.org>
#
#    This program is free software: you can redistribute it and/or modify
#    it under the terms of the GNU General Public License as published by
#    the Free Software Foundation, either version 3 of the License, or
#    (at your option) any later version.
#
#    This program is distributed in the hope that it will be useful,
#    but WITHOUT ANY WARRANTY; without even the implied warranty of
#    MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#    GNU General Public License for more details.
#
#    You should have received a copy of the GNU General Public License
#    along with this program.  If not, see <http://www.gnu.org/licenses/>.
r"""figgis/store.py keeps a marshalled value in an XML file on disk.

Files are written as UTF-8 (with a byte-order mark), indented two spaces per level.  A
save renders into ``<path>.w.tmp`` and only then replaces ``<path>``, so a failed or
interrupted save never leaves a partial file behind.  A load copies ``<path>`` to
``<path>.r.tmp`` and reads the copy; if the file's modification time moved while that
happened (another process saved over it) the load is retried, a few times, before giving
up with :class:`figgis.StabilityFailure`.  That check is the only protection against
concurrent writers: callers needing more must serialize access to the file themselves.

Neither :func:`save` nor :func:`load` raises; both report failures in their result::

    ok, error = save( options, "options.xml" )
    options, ok, error = load( "options.xml", UserOptions )
"""
import codecs, logging, os, shutil, time

from figgis import FiggisError, NotFound, StabilityFailure, SaveError, StoreError
from figgis import XML

__version__ = "0.1"
__author__ = "Shawn Sulma <genosha@470th.org>"
__all__ = [ 'save', 'load', 'XMLFileStore', 'WRITE_SUFFIX', 'READ_SUFFIX', 'ATTEMPTS', 'DELAY' ]

log = logging.getLogger( __name__ )

WRITE_SUFFIX = '.w.tmp'
READ_SUFFIX = '.r.tmp'
ATTEMPTS = 3
DELAY = 0.05

def save ( value, path, **options ) :
    r"""Save ``value`` to the file ``path``.  Returns ``( ok, error )``."""
    return XMLFileStore( type( value ), **options ).save( value, path )

def load ( path, kind, **options ) :
    r"""Load an instance of ``kind`` from the file ``path``.  Returns ``( value, ok, error )``."""
    return XMLFileStore( kind, **options ).load( path )

def _mtime ( path ) :
    return os.stat( path ).st_mtime_ns

def _discard ( path ) :
    try :
        if os.path.exists( path ) :
            os.remove( path )
    except OSError :
        log.warning( "cannot remove %s", path, exc_info = True )

def _failure ( kind, message, cause ) :
    error = kind( "%s: %s" % ( message, cause ) )
    error.__cause__ = cause
    return error

class XMLFileStore ( object ) :
    def __init__ ( self, kind, attempts = ATTEMPTS, delay = DELAY, indent = '  ', accessors = None, strict = False ) :
        self.kind = kind
        self.attempts = attempts
        self.delay = delay
        self.indent = indent
        self.accessors = accessors
        self.strict = strict

    def render ( self, value ) :
        root = XML.XMLWriter( self.accessors, self.strict ).write( value, self.kind )
        return codecs.BOM_UTF8 + ( XML.DECLARATION + '\n' + XML.tostring( root, self.indent ) ).encode( 'utf-8' )

    def save ( self, value, path ) :
        temp = path + WRITE_SUFFIX
        try :
            with open( temp, 'wb' ) as f :
                f.write( self.render( value ) )
                f.flush()
                os.fsync( f.fileno() )
            self._replace( temp, path )
        except Exception as ex :
            error = ex if isinstance( ex, SaveError ) else _failure( SaveError, "XMLFileStore.save( %s )" % path, ex )
            log.error( "%s", error )
            _discard( temp )
            return False, error
        return True, None

    def _replace ( self, temp, path ) :
        try :
            os.replace( temp, path )
        except OSError :
            log.warning( "cannot replace %s; removing it first.", path, exc_info = True )
            _discard( path )
            os.rename( temp, path )

    def load ( self, path ) :
        for attempt in range( 1, self.attempts + 1 ) :
            try :
                value, stable = self._read( path )
            except FiggisError as ex :
                log.error( "XMLFileStore.load( %s ): %s", path, ex )
                return None, False, ex
            except Exception as ex :
                error = _failure( StoreError, "XMLFileStore.load( %s )" % path, ex )
                log.error( "%s", error )
                return None, False, error
            if stable :
                return value, True, None
            log.debug( "%s changed while being read (attempt %d of %d).", path, attempt, self.attempts )
            if attempt < self.attempts :
                time.sleep( self.delay )
        error = StabilityFailure( "XMLFileStore.load( %s ): the file kept changing while being read." % path )
        log.error( "%s", error )
        return None, False, error

    def _read ( self, path ) :
        if not os.path.exists( path ) :
            raise NotFound( "XMLFileStore.load( %s ): file not found." % path )
        temp = path + READ_SUFFIX
        before = _mtime( path )
        shutil.copyfile( path, temp )
        try :
            value = XML.XMLReader( XML.parse( temp ), self.accessors, self.strict ).read( self.kind )
        finally :
            _discard( temp )
        return value, _mtime( path ) == before
